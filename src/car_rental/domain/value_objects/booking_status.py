"""Booking status and lifecycle actions."""

from enum import Enum


class BookingStatus(Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingAction(Enum):
    """Lifecycle actions a caller may request on a booking."""
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"

    @property
    def target_status(self) -> BookingStatus:
        """Get the status this action moves the booking to."""
        return _ACTION_TARGETS[self]


_ACTION_TARGETS = {
    BookingAction.CONFIRM: BookingStatus.CONFIRMED,
    BookingAction.CANCEL: BookingStatus.CANCELLED,
    BookingAction.COMPLETE: BookingStatus.COMPLETED,
}
