"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.car_rental.domain.entities.booking import Booking, BookingStatus
    from src.car_rental.domain.entities.car import Car, CarSummary
    from src.car_rental.domain.value_objects.schedule import ScheduleEntry

T = TypeVar("T")

SchedulePredicate = Callable[["ScheduleEntry"], bool]


class BookingRepository(ABC):
    """Port interface for booking repository."""

    @abstractmethod
    async def save(self, booking: "Booking") -> "Booking":
        """Save a booking (create or full update)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional["Booking"]:
        """Find booking by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id_for_update(self, booking_id: UUID) -> Optional["Booking"]:
        """Find booking by ID, locking it for the rest of the current atomic unit."""
        raise NotImplementedError

    @abstractmethod
    async def find_all(self) -> List["Booking"]:
        """Find all bookings, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_car_id(self, car_id: UUID) -> List["Booking"]:
        """Find all bookings referencing a car, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def update_status(self, booking: "Booking", expected_status: "BookingStatus") -> bool:
        """Persist status and update timestamp if the stored status is still ``expected_status``.

        Returns False when the booking is absent or its status changed since it was read.
        """
        raise NotImplementedError


class CarRepository(ABC):
    """Port interface for car repository."""

    @abstractmethod
    async def save(self, car: "Car") -> "Car":
        """Save a car including its schedule."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, car_id: UUID) -> Optional["Car"]:
        """Find car by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_summaries(self, car_ids: Iterable[UUID]) -> Dict[UUID, "CarSummary"]:
        """Find summaries for the given cars; absent cars are omitted."""
        raise NotImplementedError

    @abstractmethod
    async def push_schedule_entries(self, car_id: UUID, entries: List["ScheduleEntry"]) -> bool:
        """Append entries to a car's schedule. False if the car does not exist."""
        raise NotImplementedError

    @abstractmethod
    async def pull_schedule_entries(
        self, car_id: UUID, predicate: SchedulePredicate
    ) -> Optional[List["ScheduleEntry"]]:
        """Remove matching entries from a car's schedule.

        Returns the removed entries, or None if the car does not exist.
        """
        raise NotImplementedError


class TransactionContext:
    """Repositories bound to a single atomic unit."""

    def __init__(self, bookings: BookingRepository, cars: CarRepository):
        self.bookings = bookings
        self.cars = cars


class TransactionManager(ABC):
    """Port for atomic multi-record writes."""

    @abstractmethod
    async def run_in_transaction(self, work: Callable[[TransactionContext], Awaitable[T]]) -> T:
        """Run ``work`` as one atomic unit.

        Commits when ``work`` returns. Rolls back every write when it raises;
        BookingError subclasses propagate unchanged, anything else surfaces
        as StorageFailure.
        """
        raise NotImplementedError

    @abstractmethod
    def reader(self) -> AsyncContextManager[TransactionContext]:
        """Open a context for plain reads outside any atomic unit."""
        raise NotImplementedError
