"""Domain error taxonomy for the booking lifecycle."""


class BookingError(Exception):
    """Base class for failures reported by the booking core."""

    error_type = "booking_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(BookingError, ValueError):
    """Malformed identifier or unrecognised request value."""

    error_type = "invalid_argument"
    status_code = 400


class NotFound(BookingError, LookupError):
    """Booking (or the car it references) does not exist."""

    error_type = "not_found"
    status_code = 404


class InvalidState(BookingError, ValueError):
    """Requested transition is not legal from the current status."""

    error_type = "invalid_state"
    status_code = 400


class StorageFailure(BookingError, RuntimeError):
    """The atomic unit failed and was rolled back."""

    error_type = "storage_failure"
    status_code = 500
