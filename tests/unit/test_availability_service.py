"""Unit tests for the car schedule updater."""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from src.car_rental.application.services.availability_service import ScheduleUpdater
from src.car_rental.domain.exceptions import NotFound
from src.car_rental.domain.value_objects.schedule import Availability, ScheduleEntry
from src.car_rental.infrastructure.repositories.memory_repositories import (
    InMemoryCarRepository,
    InMemoryDataStore,
)

from tests.factories import JUNE_1, JUNE_2, JUNE_3, build_car


class TestScheduleUpdater:
    """Test cases for ScheduleUpdater."""

    def setup_store(self, car):
        store = InMemoryDataStore()
        store.cars[car.id] = car
        return store, ScheduleUpdater(InMemoryCarRepository(store))

    @pytest.mark.asyncio
    async def test_block_dates_appends_one_entry_per_date(self):
        """Test that blocking adds single-date blocking entries."""
        car = build_car()
        store, updater = self.setup_store(car)
        booking_id = uuid4()

        added = await updater.block_dates(car.id, [JUNE_2, JUNE_1, JUNE_2], booking_id)

        schedule = store.cars[car.id].schedule
        assert added == 2
        assert [entry.dates for entry in schedule] == [(JUNE_1,), (JUNE_2,)]
        assert all(entry.availability is Availability.BLOCKED for entry in schedule)
        assert all(entry.booking_id == booking_id for entry in schedule)

    @pytest.mark.asyncio
    async def test_block_dates_keeps_existing_entries(self):
        """Test that blocking never rewrites existing entries."""
        existing = ScheduleEntry(dates=(JUNE_1,), availability=Availability.OPEN)
        car = build_car(schedule=[existing])
        store, updater = self.setup_store(car)

        await updater.block_dates(car.id, [JUNE_1], uuid4())

        schedule = store.cars[car.id].schedule
        assert schedule[0] == existing
        assert len(schedule) == 2

    @pytest.mark.asyncio
    async def test_block_no_dates_skips_storage(self):
        """Test that an empty date list touches nothing."""
        cars = AsyncMock()
        updater = ScheduleUpdater(cars)

        assert await updater.block_dates(uuid4(), [], uuid4()) == 0
        assert await updater.unblock_dates(uuid4(), [], uuid4()) == 0
        cars.push_schedule_entries.assert_not_called()
        cars.pull_schedule_entries.assert_not_called()

    @pytest.mark.asyncio
    async def test_block_missing_car(self):
        """Test blocking dates on a car that does not exist."""
        updater = ScheduleUpdater(InMemoryCarRepository(InMemoryDataStore()))

        with pytest.raises(NotFound, match="Car not found"):
            await updater.block_dates(uuid4(), [JUNE_1], uuid4())

    @pytest.mark.asyncio
    async def test_unblock_removes_only_own_entries(self):
        """Test that unblocking leaves other bookings' and unrelated entries alone."""
        booking_id, other_booking_id = uuid4(), uuid4()
        manual = ScheduleEntry(dates=(JUNE_1,), availability=Availability.BLOCKED)
        car = build_car(schedule=[
            manual,
            ScheduleEntry.blocking(other_booking_id, JUNE_1),
            ScheduleEntry.blocking(booking_id, JUNE_1),
            ScheduleEntry.blocking(booking_id, JUNE_2),
            ScheduleEntry.blocking(booking_id, JUNE_3),
        ])
        store, updater = self.setup_store(car)

        removed = await updater.unblock_dates(car.id, [JUNE_1, JUNE_2], booking_id)

        schedule = store.cars[car.id].schedule
        assert removed == 2
        assert schedule[0] == manual
        assert schedule[1].booking_id == other_booking_id
        assert schedule[2].dates == (JUNE_3,)
        assert len(schedule) == 3

    @pytest.mark.asyncio
    async def test_unblock_without_matches(self):
        """Test that unblocking dates that were never blocked is a no-op."""
        car = build_car()
        store, updater = self.setup_store(car)

        assert await updater.unblock_dates(car.id, [JUNE_1], uuid4()) == 0
        assert store.cars[car.id].schedule == ()

    @pytest.mark.asyncio
    async def test_unblock_missing_car(self):
        """Test unblocking dates on a car that does not exist."""
        updater = ScheduleUpdater(InMemoryCarRepository(InMemoryDataStore()))

        with pytest.raises(NotFound, match="Car not found"):
            await updater.unblock_dates(uuid4(), [JUNE_1], uuid4())
