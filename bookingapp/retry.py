# Transaction retry helper for the booking core.
#
# run_in_transaction: runs a unit of work inside transaction.atomic(),
# re-running it from scratch once when the store reports a transient failure
# (lock timeout, "database is locked", serialization failure).

import logging
import time
from typing import Callable, Type, TypeVar

from django.db import OperationalError, transaction

from .exceptions import BookingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.05


def run_in_transaction(
    operation: Callable[[], T],
    *,
    label: str,
    exhausted: Type[BookingError],
    max_attempts: int = MAX_ATTEMPTS,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> T:
    """
    Execute ``operation`` atomically, retrying on transient store failures.

    Args:
        operation: Zero-argument callable doing the whole unit of work,
            including any checks that must be re-run on retry
        label: Description for logging
        exhausted: Error raised once every attempt failed
        max_attempts: Total number of attempts
        retry_delay: Pause between attempts in seconds

    Returns:
        Whatever ``operation`` returns

    Domain errors raised by ``operation`` roll the transaction back and
    propagate unchanged; they are never retried.
    """
    last_error = None
    for attempt in range(max_attempts):
        try:
            with transaction.atomic():
                result = operation()
            if attempt > 0:
                logger.info(f"{label} succeeded on attempt {attempt + 1}")
            return result
        except OperationalError as e:
            last_error = e
            logger.warning(
                f"{label} failed: {e}, attempt {attempt + 1}/{max_attempts}"
            )

        if attempt < max_attempts - 1:
            time.sleep(retry_delay)

    logger.error(f"{label} failed after {max_attempts} attempts")
    raise exhausted() from last_error
