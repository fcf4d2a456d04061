"""Car entity and its availability calendar."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from src.car_rental.domain.value_objects.schedule import ScheduleEntry, normalize_dates


@dataclass(frozen=True)
class CarSummary:
    """Subset of car fields embedded in booking responses."""

    id: UUID
    model: str
    registration_number: str
    image: Optional[str]
    price_per_day: Decimal


class Car:
    """Car entity. Only the schedule is mutated by the booking lifecycle."""

    def __init__(
        self,
        model: str,
        registration_number: str,
        price_per_day: Decimal,
        image: Optional[str] = None,
        schedule: Optional[Iterable[ScheduleEntry]] = None,
        car_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if not model or not model.strip():
            raise ValueError("Car model is required")
        if not registration_number or not registration_number.strip():
            raise ValueError("Registration number is required")

        self._id = car_id or uuid4()
        self._model = model.strip()
        self._registration_number = registration_number.strip().upper()
        self._price_per_day = Decimal(price_per_day)
        self._image = image
        self._schedule: List[ScheduleEntry] = list(schedule or [])
        self._created_at = created_at or datetime.utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def model(self) -> str:
        return self._model

    @property
    def registration_number(self) -> str:
        return self._registration_number

    @property
    def price_per_day(self) -> Decimal:
        return self._price_per_day

    @property
    def image(self) -> Optional[str]:
        return self._image

    @property
    def schedule(self) -> Tuple[ScheduleEntry, ...]:
        """Get a read-only view of the schedule entries, in insertion order."""
        return tuple(self._schedule)

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def append_entries(self, entries: Iterable[ScheduleEntry]) -> int:
        """Append schedule entries and return how many were added."""
        entries = list(entries)
        if entries:
            self._schedule.extend(entries)
            self._updated_at = datetime.utcnow()
        return len(entries)

    def remove_entries(self, predicate: Callable[[ScheduleEntry], bool]) -> List[ScheduleEntry]:
        """Remove every entry matching ``predicate`` and return the removed ones."""
        removed = [entry for entry in self._schedule if predicate(entry)]
        if removed:
            self._schedule = [entry for entry in self._schedule if not predicate(entry)]
            self._updated_at = datetime.utcnow()
        return removed

    def blocked_dates(self) -> Tuple[date, ...]:
        """Get every date covered by a blocking entry."""
        return normalize_dates(
            day for entry in self._schedule if entry.is_blocking for day in entry.dates
        )

    def is_available_on(self, day: date) -> bool:
        """Check if no blocking entry covers the given date."""
        return day not in self.blocked_dates()

    def summary(self) -> CarSummary:
        """Project the fields shown alongside a booking."""
        return CarSummary(
            id=self._id,
            model=self._model,
            registration_number=self._registration_number,
            image=self._image,
            price_per_day=self._price_per_day,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Car):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return f"Car({self._registration_number}, {self._model})"
