"""In-memory repository implementations for testing and development."""

import asyncio
import copy
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar
from uuid import UUID

from src.car_rental.application.ports.repositories import (
    BookingRepository,
    CarRepository,
    SchedulePredicate,
    TransactionContext,
    TransactionManager,
)
from src.car_rental.domain.entities.booking import Booking, BookingStatus
from src.car_rental.domain.entities.car import Car, CarSummary
from src.car_rental.domain.exceptions import BookingError, StorageFailure
from src.car_rental.domain.value_objects.schedule import ScheduleEntry
from src.car_rental.infrastructure.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class InMemoryDataStore:
    """Booking and car records shared by every repository of one backend."""

    def __init__(self):
        self.bookings: Dict[UUID, Booking] = {}
        self.cars: Dict[UUID, Car] = {}

    def snapshot(self) -> "InMemoryDataStore":
        """Deep copy of every record."""
        clone = InMemoryDataStore()
        clone.bookings = copy.deepcopy(self.bookings)
        clone.cars = copy.deepcopy(self.cars)
        return clone

    def replace_with(self, other: "InMemoryDataStore") -> None:
        self.bookings = other.bookings
        self.cars = other.cars


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of booking repository."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store

    async def save(self, booking: Booking) -> Booking:
        """Save a booking."""
        self._store.bookings[booking.id] = copy.deepcopy(booking)
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        booking = self._store.bookings.get(booking_id)
        return copy.deepcopy(booking) if booking else None

    async def find_by_id_for_update(self, booking_id: UUID) -> Optional[Booking]:
        # The transaction manager's lock already serialises atomic units.
        return await self.find_by_id(booking_id)

    async def find_all(self) -> List[Booking]:
        """Find all bookings, newest first."""
        return self._newest_first(self._store.bookings.values())

    async def find_by_car_id(self, car_id: UUID) -> List[Booking]:
        """Find all bookings for a car, newest first."""
        return self._newest_first(
            booking for booking in self._store.bookings.values() if booking.car_id == car_id
        )

    async def update_status(self, booking: Booking, expected_status: BookingStatus) -> bool:
        """Persist status and update timestamp unless the stored status moved on."""
        stored = self._store.bookings.get(booking.id)
        if stored is None or stored.status is not expected_status:
            return False
        # Schedule and customer are immutable, so the whole record can be replaced.
        self._store.bookings[booking.id] = copy.deepcopy(booking)
        return True

    @staticmethod
    def _newest_first(bookings: Iterable[Booking]) -> List[Booking]:
        return [
            copy.deepcopy(booking)
            for booking in sorted(bookings, key=lambda b: b.created_at, reverse=True)
        ]


class InMemoryCarRepository(CarRepository):
    """In-memory implementation of car repository."""

    def __init__(self, store: InMemoryDataStore):
        self._store = store

    async def save(self, car: Car) -> Car:
        """Save a car."""
        self._store.cars[car.id] = copy.deepcopy(car)
        return car

    async def find_by_id(self, car_id: UUID) -> Optional[Car]:
        """Find car by ID."""
        car = self._store.cars.get(car_id)
        return copy.deepcopy(car) if car else None

    async def find_summaries(self, car_ids: Iterable[UUID]) -> Dict[UUID, CarSummary]:
        summaries = {}
        for car_id in car_ids:
            car = self._store.cars.get(car_id)
            if car:
                summaries[car_id] = car.summary()
        return summaries

    async def push_schedule_entries(self, car_id: UUID, entries: List[ScheduleEntry]) -> bool:
        """Append schedule entries to a car."""
        car = self._store.cars.get(car_id)
        if not car:
            return False
        car.append_entries(entries)
        return True

    async def pull_schedule_entries(
        self, car_id: UUID, predicate: SchedulePredicate
    ) -> Optional[List[ScheduleEntry]]:
        """Remove matching schedule entries from a car."""
        car = self._store.cars.get(car_id)
        if not car:
            return None
        return car.remove_entries(predicate)


class InMemoryTransactionManager(TransactionManager):
    """Atomic units over an in-memory store.

    Each unit runs under one lock against a private copy of the store; the
    copy replaces the shared store only when the unit returns, so readers
    never observe a half-applied unit.
    """

    def __init__(self, store: Optional[InMemoryDataStore] = None, timeout_seconds: Optional[float] = None):
        self.store = store or InMemoryDataStore()
        self._timeout_seconds = timeout_seconds
        self._lock = asyncio.Lock()

    async def run_in_transaction(self, work: Callable[[TransactionContext], Awaitable[T]]) -> T:
        async with self._lock:
            working_copy = self.store.snapshot()
            context = TransactionContext(
                bookings=InMemoryBookingRepository(working_copy),
                cars=InMemoryCarRepository(working_copy),
            )
            try:
                if self._timeout_seconds:
                    result = await asyncio.wait_for(work(context), self._timeout_seconds)
                else:
                    result = await work(context)
            except BookingError:
                raise
            except asyncio.TimeoutError as exc:
                logger.error("Atomic unit timed out; changes discarded")
                raise StorageFailure("Storage operation timed out") from exc
            except Exception as exc:
                logger.error("Atomic unit failed; changes discarded", exc_info=True)
                raise StorageFailure(f"Storage operation failed: {exc}") from exc

            self.store.replace_with(working_copy)
            return result

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[TransactionContext]:
        yield TransactionContext(
            bookings=InMemoryBookingRepository(self.store),
            cars=InMemoryCarRepository(self.store),
        )
