"""Booking entity for car rental reservations."""

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple
from uuid import UUID, uuid4

from src.car_rental.domain.booking_state import assert_booking_transition, is_terminal
from src.car_rental.domain.value_objects.booking_status import BookingAction, BookingStatus
from src.car_rental.domain.value_objects.schedule import ScheduleEntry, normalize_dates

__all__ = ["Booking", "BookingAction", "BookingStatus", "CustomerInfo", "generate_booking_number"]

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")


@dataclass(frozen=True)
class CustomerInfo:
    """Customer details captured when the booking is made."""

    full_name: str
    email: str
    phone: str
    id_number: str

    def __post_init__(self) -> None:
        """Validate customer data."""
        for field_name in ("full_name", "email", "phone", "id_number"):
            value = getattr(self, field_name)
            if not value or not value.strip():
                raise ValueError(f"Customer {field_name.replace('_', ' ')} is required")
            object.__setattr__(self, field_name, value.strip())

        object.__setattr__(self, "email", self.email.lower())
        if not EMAIL_PATTERN.fullmatch(self.email):
            raise ValueError("Invalid email format")


def generate_booking_number() -> str:
    """Generate a human-readable booking reference."""
    return f"BK-{uuid4().hex[:8].upper()}"


class Booking:
    """Booking entity representing a customer's reservation of a car."""

    def __init__(
        self,
        customer: CustomerInfo,
        car_id: UUID,
        total_amount: Decimal,
        schedule: Iterable[ScheduleEntry],
        booking_id: Optional[UUID] = None,
        booking_number: Optional[str] = None,
        status: BookingStatus = BookingStatus.PENDING,
        special_request: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        schedule = tuple(schedule)
        if not schedule:
            raise ValueError("Booking must occupy at least one date")
        total_amount = Decimal(total_amount)
        if total_amount < 0:
            raise ValueError("Total amount cannot be negative")

        self._id = booking_id or uuid4()
        self._booking_number = booking_number or generate_booking_number()
        self._customer = customer
        self._car_id = car_id
        self._total_amount = total_amount
        self._schedule: Tuple[ScheduleEntry, ...] = schedule
        self._status = status
        self._special_request = special_request
        self._created_at = created_at or datetime.utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        """Get booking ID."""
        return self._id

    @property
    def booking_number(self) -> str:
        """Get human-readable booking reference."""
        return self._booking_number

    @property
    def customer(self) -> CustomerInfo:
        return self._customer

    @property
    def car_id(self) -> UUID:
        return self._car_id

    @property
    def total_amount(self) -> Decimal:
        return self._total_amount

    @property
    def schedule(self) -> Tuple[ScheduleEntry, ...]:
        """Get the booking's own schedule (never mutated after creation)."""
        return self._schedule

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def special_request(self) -> Optional[str]:
        return self._special_request

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def occupied_dates(self) -> Tuple[date, ...]:
        """Get every calendar date this booking occupies, in order."""
        return normalize_dates(day for entry in self._schedule for day in entry.dates)

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self._status)

    def apply_status(self, target: BookingStatus) -> bool:
        """Move the booking to ``target``.

        Returns False when the booking already has that status (no-op),
        True when the status changed. Raises InvalidState for illegal moves.
        """
        assert_booking_transition(self._status, target)
        if target is self._status:
            return False
        self._status = target
        self._updated_at = datetime.utcnow()
        return True

    def apply(self, action: BookingAction) -> bool:
        """Apply a lifecycle action."""
        return self.apply_status(action.target_status)

    def confirm(self) -> bool:
        return self.apply(BookingAction.CONFIRM)

    def cancel(self) -> bool:
        return self.apply(BookingAction.CANCEL)

    def complete(self) -> bool:
        return self.apply(BookingAction.COMPLETE)

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Booking({self._booking_number}, car={self._car_id}, {self._status.value})"
