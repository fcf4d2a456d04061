"""Schedule entry value objects shared by cars and bookings."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional, Tuple
from uuid import UUID


class Availability(Enum):
    """Availability marker carried by a schedule entry."""
    BLOCKED = "blocked"
    OPEN = "open"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: Any) -> "Availability":
        """Map a stored marker (including legacy null/false/true) to an Availability."""
        if isinstance(value, Availability):
            return value
        if value is None or value is False:
            return cls.BLOCKED
        if value is True:
            return cls.OPEN
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def normalize_dates(dates: Iterable[date]) -> Tuple[date, ...]:
    """Return the dates de-duplicated and in calendar order."""
    return tuple(sorted(set(dates)))


@dataclass(frozen=True)
class ScheduleEntry:
    """Immutable set of calendar dates paired with an availability marker."""

    dates: Tuple[date, ...]
    availability: Availability = Availability.OPEN
    booking_id: Optional[UUID] = None

    def __post_init__(self) -> None:
        """Validate and normalise the entry."""
        normalized = normalize_dates(self.dates)
        if not normalized:
            raise ValueError("Schedule entry must contain at least one date")
        object.__setattr__(self, "dates", normalized)
        object.__setattr__(self, "availability", Availability.from_raw(self.availability))

    @classmethod
    def blocking(cls, booking_id: UUID, day: date) -> "ScheduleEntry":
        """Create a single-date blocking entry introduced by a booking."""
        return cls(dates=(day,), availability=Availability.BLOCKED, booking_id=booking_id)

    @property
    def is_blocking(self) -> bool:
        """Check if the entry marks its dates as unavailable."""
        return self.availability is Availability.BLOCKED

    def intersects(self, dates: Iterable[date]) -> bool:
        """Check if any of the given dates is covered by this entry."""
        return not set(self.dates).isdisjoint(dates)

    def introduced_by(self, booking_id: UUID) -> bool:
        """Check if this is a blocking entry attributed to the given booking."""
        return self.is_blocking and self.booking_id == booking_id
