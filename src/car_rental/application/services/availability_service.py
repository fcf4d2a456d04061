"""Availability schedule updater for car calendars."""

import logging
from datetime import date
from typing import Iterable
from uuid import UUID

from ..ports.repositories import CarRepository
from ...domain.exceptions import NotFound
from ...domain.value_objects.schedule import ScheduleEntry, normalize_dates
from ...infrastructure.logging import get_logger, log_with_extra

logger = get_logger(__name__)


class ScheduleUpdater:
    """Adds and removes booking-caused blocking entries on one car's schedule.

    Build it on the car repository of the caller's TransactionContext so the
    schedule write commits or rolls back together with the booking write.
    """

    def __init__(self, car_repository: CarRepository):
        self._cars = car_repository

    async def block_dates(self, car_id: UUID, dates: Iterable[date], booking_id: UUID) -> int:
        """Append one blocking entry per date. Returns the number appended."""
        days = normalize_dates(dates)
        if not days:
            return 0

        entries = [ScheduleEntry.blocking(booking_id, day) for day in days]
        if not await self._cars.push_schedule_entries(car_id, entries):
            self._warn_missing_car(car_id, booking_id, "block")
            raise NotFound(f"Car not found: {car_id}")

        log_with_extra(
            logger, logging.DEBUG,
            "Blocked car dates",
            car_id=str(car_id),
            booking_id=str(booking_id),
            dates=[day.isoformat() for day in days],
        )
        return len(entries)

    async def unblock_dates(self, car_id: UUID, dates: Iterable[date], booking_id: UUID) -> int:
        """Remove the blocking entries this booking introduced for the given dates."""
        days = normalize_dates(dates)
        if not days:
            return 0

        def introduced_by_booking(entry: ScheduleEntry) -> bool:
            return entry.introduced_by(booking_id) and entry.intersects(days)

        removed = await self._cars.pull_schedule_entries(car_id, introduced_by_booking)
        if removed is None:
            self._warn_missing_car(car_id, booking_id, "unblock")
            raise NotFound(f"Car not found: {car_id}")

        log_with_extra(
            logger, logging.DEBUG,
            "Unblocked car dates",
            car_id=str(car_id),
            booking_id=str(booking_id),
            removed_entries=len(removed),
        )
        return len(removed)

    @staticmethod
    def _warn_missing_car(car_id: UUID, booking_id: UUID, operation: str) -> None:
        log_with_extra(
            logger, logging.WARNING,
            f"Cannot {operation} dates: car no longer exists",
            car_id=str(car_id),
            booking_id=str(booking_id),
        )
