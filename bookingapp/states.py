"""
Booking state machine.

Statuses move forward only. CANCELLED and PAYMENT_FAILED release the car's
calendar; every other status blocks it, including NO_SHOW.
"""

REQUESTED = 'REQUESTED'
AWAITING_PAYMENT = 'AWAITING_PAYMENT'
CONFIRMED = 'CONFIRMED'
ON_DELIVERY_PENDING = 'ON_DELIVERY_PENDING'
COMPLETED = 'COMPLETED'
CANCELLED = 'CANCELLED'
PAYMENT_FAILED = 'PAYMENT_FAILED'
NO_SHOW = 'NO_SHOW'

STATUS_CHOICES = (
    (REQUESTED, 'Requested'),
    (AWAITING_PAYMENT, 'Awaiting Payment'),
    (CONFIRMED, 'Confirmed'),
    (ON_DELIVERY_PENDING, 'On Delivery Pending'),
    (COMPLETED, 'Completed'),
    (CANCELLED, 'Cancelled'),
    (PAYMENT_FAILED, 'Payment Failed'),
    (NO_SHOW, 'No Show'),
)

BLOCKING_STATUSES = frozenset({
    REQUESTED,
    AWAITING_PAYMENT,
    ON_DELIVERY_PENDING,
    CONFIRMED,
    COMPLETED,
    NO_SHOW,
})

TERMINAL_STATUSES = frozenset({
    CANCELLED,
    COMPLETED,
    NO_SHOW,
    PAYMENT_FAILED,
})

NON_TERMINAL_STATUSES = frozenset(
    status for status, _ in STATUS_CHOICES if status not in TERMINAL_STATUSES
)

# Events
ACCEPT = 'ACCEPT'
CONFIRM = 'CONFIRM'
PAYMENT_SUCCEEDED = 'PAYMENT_SUCCEEDED'
PAYMENT_FAILED_EVENT = 'PAYMENT_FAILED'
DISPATCH = 'DISPATCH'
COMPLETE = 'COMPLETE'
MARK_NO_SHOW = 'MARK_NO_SHOW'
CANCEL = 'CANCEL'

# event -> (allowed source statuses, target status)
TRANSITIONS = {
    ACCEPT: (frozenset({REQUESTED}), AWAITING_PAYMENT),
    CONFIRM: (frozenset({REQUESTED}), CONFIRMED),
    PAYMENT_SUCCEEDED: (frozenset({AWAITING_PAYMENT}), CONFIRMED),
    PAYMENT_FAILED_EVENT: (frozenset({AWAITING_PAYMENT}), PAYMENT_FAILED),
    DISPATCH: (frozenset({CONFIRMED}), ON_DELIVERY_PENDING),
    COMPLETE: (frozenset({CONFIRMED, ON_DELIVERY_PENDING}), COMPLETED),
    MARK_NO_SHOW: (frozenset({CONFIRMED, ON_DELIVERY_PENDING}), NO_SHOW),
    CANCEL: (NON_TERMINAL_STATUSES, CANCELLED),
}

EVENTS = tuple(TRANSITIONS)

OWNER_EVENTS = frozenset({ACCEPT, CONFIRM, DISPATCH, COMPLETE, MARK_NO_SHOW, CANCEL})
PAYMENT_EVENTS = frozenset({PAYMENT_SUCCEEDED, PAYMENT_FAILED_EVENT})
RENTER_EVENTS = frozenset({CANCEL})


def is_blocking(status):
    return status in BLOCKING_STATUSES


def target_status(current, event):
    """Return the status ``event`` leads to from ``current``, or None if illegal."""
    sources, target = TRANSITIONS[event]
    if current not in sources:
        return None
    return target
