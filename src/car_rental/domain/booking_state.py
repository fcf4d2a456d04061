"""Booking state machine."""

from src.car_rental.domain.exceptions import InvalidState
from src.car_rental.domain.value_objects.booking_status import BookingStatus

# Same-status targets are idempotent no-ops.
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.COMPLETED,
    }),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def is_terminal(status: BookingStatus) -> bool:
    """Check if no transition may leave this status."""
    return not BOOKING_TRANSITIONS.get(status)


def assert_booking_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidState unless ``current -> target`` is permitted."""
    if target in BOOKING_TRANSITIONS.get(current, frozenset()):
        return

    if current is BookingStatus.COMPLETED:
        if target is BookingStatus.COMPLETED:
            raise InvalidState("Booking is already completed")
        raise InvalidState("Cannot modify a completed booking")

    if current is BookingStatus.CANCELLED:
        if target is BookingStatus.CANCELLED:
            raise InvalidState("Booking is already cancelled")
        if target is BookingStatus.COMPLETED:
            raise InvalidState("Cannot complete a cancelled booking")
        raise InvalidState("Cannot modify a cancelled booking")

    raise InvalidState(
        f"Invalid booking transition: {current.value} -> {target.value}"
    )
