"""
Booking Lifecycle Manager

Owns the booking state machine, guarantees that blocking bookings of a car
never overlap, and attaches reviews to completed bookings.
"""

import logging
import math
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import List, NamedTuple

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from accountapp.actors import Actor
from carsapp.models import Car
from reviewapp.aggregator import RatingAggregator
from reviewapp.models import Review
from . import notifications, states
from .exceptions import (
    ConflictError,
    DuplicateReviewError,
    ForbiddenError,
    InvalidStateError,
    NotCompletedError,
    NotFoundError,
    PolicyError,
    StorageError,
    ValidationError,
)
from .models import Booking, Payment
from .retry import run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_WINDOW = timedelta(hours=1)
DEFAULT_CURRENCY = 'KES'
SECONDS_PER_DAY = 24 * 60 * 60


class DateRange(NamedTuple):
    """Half-open interval [start, end)."""
    start: object
    end: object

    def overlaps(self, other):
        return self.start < other.end and other.start < self.end


def quote_price(car, date_range):
    """Daily price times the number of started days, at least one day."""
    seconds = (date_range.end - date_range.start).total_seconds()
    days = max(1, math.ceil(seconds / SECONDS_PER_DAY))
    return (car.price_per_day * days).quantize(Decimal('0.01'))


class BookingManager:
    """
    Service for booking requests, status transitions and reviews.

    Collaborators are injected; nothing here is shared process-wide.
    """

    def __init__(
        self,
        notifier=None,
        aggregator=None,
        clock=timezone.now,
        cancellation_window=DEFAULT_CANCELLATION_WINDOW,
        default_currency=DEFAULT_CURRENCY,
    ):
        self.notifier = notifier or notifications.DatabaseNotifier()
        self.aggregator = aggregator or RatingAggregator()
        self.clock = clock
        self.cancellation_window = cancellation_window
        self.default_currency = default_currency

    @classmethod
    def from_settings(cls, **overrides):
        options = {
            'cancellation_window': getattr(settings, 'RENTAL_CANCELLATION_WINDOW', DEFAULT_CANCELLATION_WINDOW),
            'default_currency': getattr(settings, 'RENTAL_DEFAULT_CURRENCY', DEFAULT_CURRENCY),
        }
        options.update(overrides)
        return cls(**options)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def get_availability(self, car_id) -> List[DateRange]:
        """Blocked intervals of a car, ordered by start."""
        if not Car.objects.filter(pk=car_id).exists():
            raise NotFoundError('Car not found')

        intervals = (
            Booking.objects.filter(car_id=car_id)
            .blocking()
            .order_by('start_date')
            .values_list('start_date', 'end_date')
        )
        return [DateRange(start, end) for start, end in intervals]

    def is_available(self, car_id, date_range):
        self._check_range_order(date_range)
        return not self._conflicts(car_id, date_range).exists()

    def _conflicts(self, car_id, date_range):
        return (
            Booking.objects.filter(car_id=car_id)
            .blocking()
            .overlapping(date_range.start, date_range.end)
        )

    # ------------------------------------------------------------------
    # Booking requests
    # ------------------------------------------------------------------

    def request_booking(
        self,
        car_id,
        renter: Actor,
        date_range: DateRange,
        quoted_price,
        payment_method=Payment.METHOD_CASH,
        pickup_location='',
        return_location='',
        notes='',
    ) -> Booking:
        """
        Reserve ``car_id`` for ``date_range``.

        The car row is locked for the duration of the transaction so that
        concurrent requests for the same car run one after another. The
        overlap query is re-run after the insert; any hit aborts the
        transaction with ConflictError.
        """
        if renter.id is None:
            raise ForbiddenError('Only signed-in users can request bookings')

        self._check_range_order(date_range)
        if date_range.start < self.clock():
            raise ValidationError('Start date cannot be in the past')

        price = self._parse_price(quoted_price)

        if payment_method not in dict(Payment.PAYMENT_METHODS):
            raise ValidationError('Invalid payment method')

        def create():
            try:
                car = Car.objects.select_for_update().get(pk=car_id)
            except Car.DoesNotExist:
                raise NotFoundError('Car not found')

            self._check_car_window(car, date_range)

            if self._conflicts(car.id, date_range).exists():
                raise ConflictError()

            if payment_method in Payment.ONLINE_METHODS:
                initial_status = states.AWAITING_PAYMENT
            else:
                initial_status = states.REQUESTED

            booking = Booking.objects.create(
                car=car,
                user_id=renter.id,
                start_date=date_range.start,
                end_date=date_range.end,
                pickup_location=pickup_location,
                return_location=return_location,
                total_price=price,
                notes=notes or '',
                status=initial_status,
            )

            Payment.objects.create(
                booking=booking,
                user_id=renter.id,
                amount=price,
                currency=self.default_currency,
                payment_method=payment_method,
                payment_type=Payment.type_for_method(payment_method),
            )

            if self._conflicts(car.id, date_range).exclude(pk=booking.pk).exists():
                raise ConflictError()

            notifications.notify_on_commit(
                self.notifier,
                car.owner_id,
                notifications.BOOKING_REQUESTED,
                'New booking request',
                f'Your car "{car.title}" was requested from '
                f'{date_range.start:%Y-%m-%d} to {date_range.end:%Y-%m-%d}.',
            )
            return booking

        booking = run_in_transaction(
            create,
            label=f"Booking request for car {car_id}",
            exhausted=ConflictError,
        )
        logger.info(
            f"Booking {booking.id} created for car {car_id} by user {renter.id} "
            f"({booking.status})"
        )
        return booking

    def _check_range_order(self, date_range):
        if date_range.start is None or date_range.end is None:
            raise ValidationError('start_date and end_date are required')
        if timezone.is_naive(date_range.start) or timezone.is_naive(date_range.end):
            raise ValidationError('Dates must include a timezone')
        if date_range.start >= date_range.end:
            raise ValidationError('End date must be after start date')

    def _check_car_window(self, car, date_range):
        if not car.is_bookable:
            raise ValidationError('This car is not currently available for booking')
        if car.available_from and date_range.start < car.available_from:
            raise ValidationError(
                f'This car is only available from {car.available_from:%Y-%m-%d}'
            )
        if car.available_to and date_range.end > car.available_to:
            raise ValidationError(
                f'This car is only available until {car.available_to:%Y-%m-%d}'
            )

    @staticmethod
    def _parse_price(quoted_price):
        try:
            price = Decimal(str(quoted_price))
        except (InvalidOperation, ValueError):
            raise ValidationError('Invalid price')
        if not price.is_finite() or price <= 0:
            raise ValidationError('Price must be greater than zero')
        return price.quantize(Decimal('0.01'))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(self, booking_id, event, actor: Actor, reference='') -> Booking:
        """
        Apply ``event`` to a booking on behalf of ``actor``.

        Checks run in order: authorization, legality from the current
        status, then the renter cancellation window.
        """
        if event not in states.TRANSITIONS:
            raise ValidationError(f'Unknown event: {event}')

        def apply():
            try:
                booking = Booking.objects.select_for_update().get(pk=booking_id)
            except Booking.DoesNotExist:
                raise NotFoundError('Booking not found')

            car = booking.car
            self._authorize(booking, car, event, actor)

            previous = booking.status
            target = states.target_status(previous, event)
            if target is None:
                raise InvalidStateError(
                    f'Cannot apply {event} to a booking with status: {previous}'
                )

            if event == states.CANCEL and self._is_renter_action(car, actor):
                self._check_cancellation_window(booking)

            booking.status = target
            booking.save(update_fields=['status', 'updated_at'])
            self._update_payment(booking, event, reference)
            self._notify_transition(booking, car, event, actor)

            logger.info(
                f"Booking {booking.id}: {previous} -> {target} "
                f"via {event} by {actor.role} {actor.id}"
            )
            return booking

        return run_in_transaction(
            apply,
            label=f"{event} on booking {booking_id}",
            exhausted=StorageError,
        )

    def _authorize(self, booking, car, event, actor):
        if actor.is_admin:
            return

        if event in states.PAYMENT_EVENTS:
            if actor.is_system:
                return
            raise ForbiddenError('Only the payment provider can report payment outcomes')

        if actor.is_system:
            raise ForbiddenError('The payment provider can only report payment outcomes')

        if car.owner_id == actor.id and event in states.OWNER_EVENTS:
            return

        if booking.user_id == actor.id and event in states.RENTER_EVENTS:
            return

        raise ForbiddenError(f'You are not authorized to {event.lower()} this booking')

    @staticmethod
    def _is_renter_action(car, actor):
        return not actor.is_admin and not actor.is_system and car.owner_id != actor.id

    def _check_cancellation_window(self, booking):
        lead_time = booking.start_date - self.clock()
        if lead_time < self.cancellation_window:
            hours = self.cancellation_window.total_seconds() / 3600
            raise PolicyError(
                f'Bookings cannot be cancelled within {hours:g} hour(s) of pickup'
            )

    def _update_payment(self, booking, event, reference):
        payment = Payment.objects.filter(booking=booking).first()
        if payment is None:
            return

        if event == states.PAYMENT_SUCCEEDED:
            payment.status = Payment.STATUS_PAID
            if reference:
                payment.transaction_id = reference
        elif event == states.PAYMENT_FAILED_EVENT:
            payment.status = Payment.STATUS_FAILED
        elif event == states.CANCEL and payment.status == Payment.STATUS_PAID:
            # The refund itself is issued by the payment provider.
            logger.warning(f"Refund required for payment {payment.id} of booking {booking.id}")
            payment.status = Payment.STATUS_REFUNDED
        else:
            return

        payment.save(update_fields=['status', 'transaction_id', 'updated_at'])

    def _notify_transition(self, booking, car, event, actor):
        label = booking.status.replace('_', ' ').lower()

        if event == states.CANCEL and self._is_renter_action(car, actor):
            notifications.notify_on_commit(
                self.notifier,
                car.owner_id,
                notifications.BOOKING_CANCELLED,
                'Booking Cancelled by Renter',
                f'Booking {booking.id} for your car "{car.title}" has been cancelled by the renter.',
            )
            return

        if event == states.PAYMENT_SUCCEEDED:
            notifications.notify_on_commit(
                self.notifier,
                car.owner_id,
                notifications.PAYMENT_RECEIVED,
                'Payment Received',
                f'Payment for booking {booking.id} has been received.',
            )

        notifications.notify_on_commit(
            self.notifier,
            booking.user_id,
            notifications.BOOKING_STATUS_CHANGED,
            'Booking status updated',
            f'Your booking {booking.id} for "{car.title}" is now {label}.',
        )

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def attach_review(self, booking_id, renter: Actor, rating, comment='') -> Review:
        """
        Create the review for a completed booking and refresh the car's
        rating aggregate in the same transaction.
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError('Rating must be a number between 1 and 5')
        if comment is not None and not isinstance(comment, str):
            raise ValidationError('Comment must be a string')

        def create():
            try:
                booking = Booking.objects.get(pk=booking_id)
            except Booking.DoesNotExist:
                raise NotFoundError('Booking not found')

            if booking.user_id != renter.id:
                raise ForbiddenError('You can only review your own bookings')
            if booking.status != states.COMPLETED:
                raise NotCompletedError()
            if Review.objects.filter(booking=booking).exists():
                raise DuplicateReviewError()

            try:
                with transaction.atomic():
                    review = Review.objects.create(
                        booking=booking,
                        car_id=booking.car_id,
                        user_id=renter.id,
                        rating=rating,
                        comment=comment or '',
                    )
            except IntegrityError:
                raise DuplicateReviewError()

            car = self.aggregator.recompute(booking.car_id)

            if car.owner_id != renter.id:
                notifications.notify_on_commit(
                    self.notifier,
                    car.owner_id,
                    notifications.NEW_REVIEW,
                    'New review for your car',
                    f'A renter left a {rating}-star review for "{car.title}".',
                )
            return review

        review = run_in_transaction(
            create,
            label=f"Review for booking {booking_id}",
            exhausted=StorageError,
        )
        logger.info(f"Review {review.id} attached to booking {booking_id}")
        return review
