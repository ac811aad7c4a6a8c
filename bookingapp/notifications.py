"""
Notification collaborator for the booking core.

The core only needs ``notify(user_id, type, title, message)``. Delivery is
fire-and-forget: it is scheduled after the surrounding transaction commits
and a failing notifier never affects the booking or review that caused it.
"""

import logging

from django.db import transaction

from accountapp.models import Notification

logger = logging.getLogger(__name__)

BOOKING_REQUESTED = 'BOOKING_REQUESTED'
BOOKING_STATUS_CHANGED = 'BOOKING_STATUS_CHANGED'
BOOKING_CANCELLED = 'BOOKING_CANCELLED'
PAYMENT_RECEIVED = 'PAYMENT_RECEIVED'
NEW_REVIEW = 'NEW_REVIEW'


class DatabaseNotifier:
    """Stores notifications in the user's in-app inbox."""

    def notify(self, user_id, type, title, message):
        Notification.objects.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
        )


def notify_on_commit(notifier, user_id, type, title, message):
    """Schedule ``notifier.notify`` to run once the current transaction commits."""
    if user_id is None:
        return

    def send():
        try:
            notifier.notify(user_id, type, title, message)
        except Exception:
            logger.exception(f"Notification {type} to user {user_id} failed")

    transaction.on_commit(send)
