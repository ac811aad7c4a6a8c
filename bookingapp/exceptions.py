class BookingError(Exception):
    """Base class for errors raised by the booking core."""

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = 'Booking operation failed'


class ValidationError(BookingError):
    default_message = 'Invalid booking input'


class NotFoundError(BookingError):
    default_message = 'Not found'


class ConflictError(BookingError):
    default_message = 'Car is not available for the selected dates'


class InvalidStateError(BookingError):
    default_message = 'Transition not allowed from the current status'


class PolicyError(BookingError):
    default_message = 'Operation blocked by booking policy'


class ForbiddenError(BookingError):
    default_message = 'You are not authorized to perform this action'


class NotCompletedError(BookingError):
    default_message = 'You can only review completed bookings'


class DuplicateReviewError(BookingError):
    default_message = 'A review has already been submitted for this booking'


class StorageError(BookingError):
    default_message = 'Storage temporarily unavailable, please retry'
