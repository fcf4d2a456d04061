"""Booking service implementing use cases for the booking lifecycle."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from .availability_service import ScheduleUpdater
from ..ports.repositories import TransactionContext, TransactionManager
from ...domain.booking_state import assert_booking_transition
from ...domain.entities.booking import Booking, BookingAction, BookingStatus, CustomerInfo
from ...domain.entities.car import Car, CarSummary
from ...domain.exceptions import InvalidArgument, InvalidState, NotFound
from ...domain.value_objects.schedule import Availability, ScheduleEntry, normalize_dates
from ...infrastructure.logging import (
    get_logger,
    log_booking_transition,
    log_business_rule_violation,
    log_with_extra,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingDetails:
    """A booking with its car reference resolved."""

    booking: Booking
    car: Optional[CarSummary]


class BookingStatusMachine:
    """Executes booking transitions and their car-schedule side effects atomically."""

    def __init__(self, transactions: TransactionManager):
        self._transactions = transactions

    async def transition(
        self,
        booking_id: UUID,
        target: Union[BookingAction, BookingStatus]
    ) -> Booking:
        """Move a booking to the target status inside one atomic unit.

        Completing blocks every occupied date on the car, cancelling removes
        the blocking entries this booking introduced. Both writes commit
        together or not at all.
        """
        if isinstance(target, BookingAction):
            target = target.target_status

        async def work(context: TransactionContext) -> Tuple[Booking, Optional[BookingStatus]]:
            return await self._apply(context, booking_id, target)

        booking, previous = await self._transactions.run_in_transaction(work)
        if previous is not None:
            log_booking_transition(
                logger,
                str(booking.id),
                previous.value,
                booking.status.value,
                booking_number=booking.booking_number,
                car_id=str(booking.car_id),
                date_count=len(booking.occupied_dates),
            )
        return booking

    async def confirm(self, booking_id: UUID) -> Booking:
        return await self.transition(booking_id, BookingAction.CONFIRM)

    async def cancel(self, booking_id: UUID) -> Booking:
        return await self.transition(booking_id, BookingAction.CANCEL)

    async def complete(self, booking_id: UUID) -> Booking:
        return await self.transition(booking_id, BookingAction.COMPLETE)

    async def _apply(
        self,
        context: TransactionContext,
        booking_id: UUID,
        target: BookingStatus
    ) -> Tuple[Booking, Optional[BookingStatus]]:
        """Run one transition; returns the booking and its previous status, or None for a no-op."""
        booking = await context.bookings.find_by_id_for_update(booking_id)
        if not booking:
            raise NotFound("Booking not found")

        previous = booking.status
        self._check_transition(booking, target)
        if not booking.apply_status(target):
            return booking, None

        if not await context.bookings.update_status(booking, previous):
            # Another unit changed the status between our read and write.
            current = await context.bookings.find_by_id_for_update(booking_id)
            if not current:
                raise NotFound("Booking not found")
            self._check_transition(current, target)
            raise InvalidState(
                f"Booking status changed concurrently: {previous.value} -> {current.status.value}"
            )

        updater = ScheduleUpdater(context.cars)
        dates = booking.occupied_dates
        if target is BookingStatus.COMPLETED:
            await updater.block_dates(booking.car_id, dates, booking.id)
        elif target is BookingStatus.CANCELLED:
            try:
                await updater.unblock_dates(booking.car_id, dates, booking.id)
            except NotFound:
                # Nothing can still be blocked on a car that no longer exists.
                log_with_extra(
                    logger,
                    logging.WARNING,
                    "Cancelled booking references a missing car",
                    booking_id=str(booking.id),
                    car_id=str(booking.car_id),
                )

        return booking, previous

    @staticmethod
    def _check_transition(booking: Booking, target: BookingStatus) -> None:
        try:
            assert_booking_transition(booking.status, target)
        except InvalidState as exc:
            log_business_rule_violation(
                logger,
                "booking_transition",
                str(exc),
                booking_id=str(booking.id),
                current_status=booking.status.value,
                requested_status=target.value,
            )
            raise


class BookingService:
    """Application service for creating and reading bookings."""

    def __init__(self, transactions: TransactionManager):
        self._transactions = transactions
        self._status_machine = BookingStatusMachine(transactions)

    @property
    def status_machine(self) -> BookingStatusMachine:
        return self._status_machine

    async def create_booking(
        self,
        customer: CustomerInfo,
        car_id: UUID,
        dates: Iterable[date],
        total_amount: Decimal,
        special_request: Optional[str] = None
    ) -> BookingDetails:
        """Create a pending booking for an existing car."""
        days = normalize_dates(dates)
        if not days:
            raise InvalidArgument("Booking must occupy at least one date")
        if Decimal(total_amount) < 0:
            raise InvalidArgument("Total amount cannot be negative")

        async def work(context: TransactionContext) -> BookingDetails:
            car = await context.cars.find_by_id(car_id)
            if not car:
                raise NotFound(f"Car not found: {car_id}")

            # One entry per date, the same shape completion later mirrors on the car.
            booking = Booking(
                customer=customer,
                car_id=car.id,
                total_amount=Decimal(total_amount),
                schedule=[ScheduleEntry(dates=(day,), availability=Availability.OPEN) for day in days],
                special_request=special_request,
            )
            await context.bookings.save(booking)
            return BookingDetails(booking=booking, car=car.summary())

        details = await self._transactions.run_in_transaction(work)
        logger.info(
            "Booking created",
            extra={
                "booking_id": str(details.booking.id),
                "booking_number": details.booking.booking_number,
                "car_id": str(car_id),
            }
        )
        return details

    async def get_booking_details(self, booking_id: UUID) -> Optional[BookingDetails]:
        """Get a booking with its car populated."""
        async with self._transactions.reader() as context:
            booking = await context.bookings.find_by_id(booking_id)
            if not booking:
                return None
            summaries = await context.cars.find_summaries([booking.car_id])
        return BookingDetails(booking=booking, car=summaries.get(booking.car_id))

    async def list_bookings(self) -> List[BookingDetails]:
        """Get all bookings, newest first, with cars populated."""
        async with self._transactions.reader() as context:
            bookings = await context.bookings.find_all()
            summaries = await context.cars.find_summaries({b.car_id for b in bookings})
        return [BookingDetails(booking=b, car=summaries.get(b.car_id)) for b in bookings]

    async def get_car_bookings(self, car_id: UUID) -> List[Booking]:
        async with self._transactions.reader() as context:
            return await context.bookings.find_by_car_id(car_id)

    async def get_car(self, car_id: UUID) -> Optional[Car]:
        """Get a car with its availability schedule."""
        async with self._transactions.reader() as context:
            return await context.cars.find_by_id(car_id)
