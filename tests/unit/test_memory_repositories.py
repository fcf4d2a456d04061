"""Unit tests for the in-memory storage backend."""

import asyncio
import copy
import pytest

from src.car_rental.domain.entities.booking import BookingStatus
from src.car_rental.domain.exceptions import InvalidState, StorageFailure
from src.car_rental.domain.value_objects.schedule import ScheduleEntry
from src.car_rental.infrastructure.repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryCarRepository,
    InMemoryDataStore,
    InMemoryTransactionManager,
)

from tests.factories import JUNE_1, build_booking, build_car


class TestInMemoryRepositories:
    """Test cases for the in-memory repositories."""

    @pytest.mark.asyncio
    async def test_reads_return_copies(self):
        """Test that callers cannot mutate stored records in place."""
        store = InMemoryDataStore()
        bookings = InMemoryBookingRepository(store)
        car = build_car()
        booking = build_booking(car)
        await bookings.save(booking)

        loaded = await bookings.find_by_id(booking.id)
        loaded.confirm()

        assert store.bookings[booking.id].status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_update_status(self):
        """Test persisting a status change."""
        store = InMemoryDataStore()
        bookings = InMemoryBookingRepository(store)
        booking = build_booking(build_car())

        assert await bookings.update_status(booking, BookingStatus.PENDING) is False

        await bookings.save(booking)
        booking.cancel()
        assert await bookings.update_status(booking, BookingStatus.PENDING) is True
        assert store.bookings[booking.id].status == BookingStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_update_status_rejects_stale_status(self):
        """Test that a write is refused when the stored status moved on."""
        store = InMemoryDataStore()
        bookings = InMemoryBookingRepository(store)
        booking = build_booking(build_car())
        await bookings.save(booking)

        completed = copy.deepcopy(booking)
        completed.complete()
        await bookings.save(completed)

        booking.cancel()
        assert await bookings.update_status(booking, BookingStatus.PENDING) is False
        assert store.bookings[booking.id].status == BookingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_push_and_pull_missing_car(self):
        """Test that schedule writes report a missing car."""
        cars = InMemoryCarRepository(InMemoryDataStore())
        car = build_car()

        assert await cars.push_schedule_entries(car.id, [ScheduleEntry(dates=(JUNE_1,))]) is False
        assert await cars.pull_schedule_entries(car.id, lambda entry: True) is None

    @pytest.mark.asyncio
    async def test_find_summaries_skips_missing(self):
        """Test that summaries are only returned for existing cars."""
        store = InMemoryDataStore()
        cars = InMemoryCarRepository(store)
        car = build_car()
        await cars.save(car)

        summaries = await cars.find_summaries([car.id, build_car().id])

        assert list(summaries) == [car.id]


class TestInMemoryTransactionManager:
    """Test cases for atomic units over the in-memory store."""

    @pytest.mark.asyncio
    async def test_commit_publishes_changes(self):
        """Test that a successful unit becomes visible to readers."""
        transactions = InMemoryTransactionManager()
        car = build_car()

        async def work(context):
            await context.cars.save(car)
            return "done"

        assert await transactions.run_in_transaction(work) == "done"
        async with transactions.reader() as context:
            assert await context.cars.find_by_id(car.id) == car

    @pytest.mark.asyncio
    async def test_booking_error_discards_changes(self):
        """Test that a domain error rolls back and propagates unchanged."""
        transactions = InMemoryTransactionManager()

        async def work(context):
            await context.cars.save(build_car())
            raise InvalidState("Cannot modify a completed booking")

        with pytest.raises(InvalidState):
            await transactions.run_in_transaction(work)

        assert transactions.store.cars == {}

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_storage_failure(self):
        """Test that any other error is reported as a storage failure."""
        transactions = InMemoryTransactionManager()

        async def work(context):
            await context.cars.save(build_car())
            raise KeyError("boom")

        with pytest.raises(StorageFailure, match="Storage operation failed"):
            await transactions.run_in_transaction(work)

        assert transactions.store.cars == {}

    @pytest.mark.asyncio
    async def test_timeout_discards_changes(self):
        """Test that a unit exceeding the timeout is rolled back."""
        transactions = InMemoryTransactionManager(timeout_seconds=0.01)

        async def work(context):
            await context.cars.save(build_car())
            await asyncio.sleep(1)

        with pytest.raises(StorageFailure, match="timed out"):
            await transactions.run_in_transaction(work)

        assert transactions.store.cars == {}
