"""SQLAlchemy repository implementations."""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.car_rental.infrastructure.logging import (
    get_logger,
    log_database_operation
)

from src.car_rental.application.ports.repositories import (
    BookingRepository,
    CarRepository,
    SchedulePredicate,
    TransactionContext,
    TransactionManager,
)
from src.car_rental.domain.entities.booking import Booking, BookingStatus, CustomerInfo
from src.car_rental.domain.entities.car import Car, CarSummary
from src.car_rental.domain.exceptions import BookingError, StorageFailure
from src.car_rental.domain.value_objects.schedule import Availability, ScheduleEntry
from src.car_rental.infrastructure.database.connection import DatabaseManager
from src.car_rental.infrastructure.database.models import BookingModel, CarModel, CarScheduleEntryModel

T = TypeVar("T")


def _dump_dates(dates: Iterable[date]) -> List[str]:
    return [day.isoformat() for day in dates]


def _load_dates(raw: Iterable[str]) -> tuple:
    return tuple(date.fromisoformat(value) for value in raw)


class SQLAlchemyBookingRepository(BookingRepository):
    """SQLAlchemy implementation of booking repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, booking: Booking) -> Booking:
        """Save a booking to the database."""
        existing_booking = await self._session.get(BookingModel, booking.id)

        if existing_booking:
            existing_booking.status = booking.status
            existing_booking.special_request = booking.special_request
            existing_booking.total_amount = booking.total_amount
            existing_booking.updated_at = booking.updated_at
        else:
            log_database_operation(
                self._logger, "INSERT", "BookingModel", booking_id=str(booking.id)
            )
            self._session.add(BookingModel(
                id=booking.id,
                booking_number=booking.booking_number,
                customer_full_name=booking.customer.full_name,
                customer_email=booking.customer.email,
                customer_phone=booking.customer.phone,
                customer_id_number=booking.customer.id_number,
                car_id=booking.car_id,
                total_amount=booking.total_amount,
                status=booking.status,
                special_request=booking.special_request,
                schedule=[
                    {"dates": _dump_dates(entry.dates), "availability": entry.availability.value}
                    for entry in booking.schedule
                ],
                created_at=booking.created_at,
                updated_at=booking.updated_at
            ))

        await self._session.flush()
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID."""
        stmt = select(BookingModel).where(BookingModel.id == booking_id)
        result = await self._session.execute(stmt)
        booking_model = result.scalar_one_or_none()

        if not booking_model:
            return None

        return self._model_to_entity(booking_model)

    async def find_by_id_for_update(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID holding a row lock until the transaction ends."""
        log_database_operation(
            self._logger, "SELECT FOR UPDATE", "BookingModel", booking_id=str(booking_id)
        )
        stmt = (
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        booking_model = result.scalar_one_or_none()

        if not booking_model:
            return None

        return self._model_to_entity(booking_model)

    async def find_all(self) -> List[Booking]:
        """Find all bookings, newest first."""
        stmt = select(BookingModel).order_by(BookingModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def find_by_car_id(self, car_id: UUID) -> List[Booking]:
        """Find all bookings for a car, newest first."""
        stmt = select(BookingModel).where(
            BookingModel.car_id == car_id
        ).order_by(BookingModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def update_status(self, booking: Booking, expected_status: BookingStatus) -> bool:
        """Persist status and update timestamp unless the stored status moved on.

        The status guard in the WHERE clause makes the write a compare-and-swap,
        so it stays correct where ``FOR UPDATE`` is not honoured (SQLite).
        """
        log_database_operation(
            self._logger,
            "UPDATE",
            "BookingModel",
            booking_id=str(booking.id),
            status=booking.status.value,
            expected_status=expected_status.value
        )
        stmt = (
            update(BookingModel)
            .where(BookingModel.id == booking.id, BookingModel.status == expected_status)
            .values(status=booking.status, updated_at=booking.updated_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    def _model_to_entity(self, model: BookingModel) -> Booking:
        """Convert database model to domain entity."""
        return Booking(
            booking_id=model.id,
            booking_number=model.booking_number,
            customer=CustomerInfo(
                full_name=model.customer_full_name,
                email=model.customer_email,
                phone=model.customer_phone,
                id_number=model.customer_id_number
            ),
            car_id=model.car_id,
            total_amount=model.total_amount,
            status=model.status,
            special_request=model.special_request,
            schedule=[
                ScheduleEntry(
                    dates=_load_dates(entry["dates"]),
                    availability=Availability.from_raw(entry.get("availability", Availability.OPEN.value))
                )
                for entry in model.schedule
            ],
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyCarRepository(CarRepository):
    """SQLAlchemy implementation of car repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, car: Car) -> Car:
        """Save a car and replace its schedule."""
        existing_car = await self._session.get(CarModel, car.id)

        if existing_car:
            existing_car.model = car.model
            existing_car.registration_number = car.registration_number
            existing_car.image = car.image
            existing_car.price_per_day = car.price_per_day
            existing_car.updated_at = datetime.utcnow()
            await self._session.execute(
                delete(CarScheduleEntryModel).where(CarScheduleEntryModel.car_id == car.id)
            )
        else:
            self._session.add(CarModel(
                id=car.id,
                model=car.model,
                registration_number=car.registration_number,
                image=car.image,
                price_per_day=car.price_per_day,
                created_at=car.created_at,
                updated_at=car.updated_at
            ))
            await self._session.flush()

        self._session.add_all(self._entry_models(car.id, car.schedule))
        await self._session.flush()
        return car

    async def find_by_id(self, car_id: UUID) -> Optional[Car]:
        """Find car by ID with its schedule."""
        car_model = await self._find_model(car_id)
        if not car_model:
            return None

        entries = await self._load_entries(car_id)
        return Car(
            car_id=car_model.id,
            model=car_model.model,
            registration_number=car_model.registration_number,
            image=car_model.image,
            price_per_day=car_model.price_per_day,
            schedule=[self._entry_to_value_object(entry) for entry in entries],
            created_at=car_model.created_at,
            updated_at=car_model.updated_at
        )

    async def find_summaries(self, car_ids: Iterable[UUID]) -> Dict[UUID, CarSummary]:
        """Find car summaries by ID."""
        ids = list(set(car_ids))
        if not ids:
            return {}

        stmt = select(CarModel).where(CarModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return {
            model.id: CarSummary(
                id=model.id,
                model=model.model,
                registration_number=model.registration_number,
                image=model.image,
                price_per_day=model.price_per_day
            )
            for model in result.scalars().all()
        }

    async def push_schedule_entries(self, car_id: UUID, entries: List[ScheduleEntry]) -> bool:
        """Append entries to a car's schedule."""
        log_database_operation(
            self._logger,
            "INSERT",
            "CarScheduleEntryModel",
            car_id=str(car_id),
            entry_count=len(entries)
        )
        car_model = await self._find_model(car_id)
        if not car_model:
            return False

        if entries:
            self._session.add_all(self._entry_models(car_id, entries))
            car_model.updated_at = datetime.utcnow()
            await self._session.flush()
        return True

    async def pull_schedule_entries(
        self, car_id: UUID, predicate: SchedulePredicate
    ) -> Optional[List[ScheduleEntry]]:
        """Delete the schedule entries matching ``predicate``."""
        car_model = await self._find_model(car_id)
        if not car_model:
            return None

        matches = []
        for entry_model in await self._load_entries(car_id):
            entry = self._entry_to_value_object(entry_model)
            if predicate(entry):
                matches.append((entry_model.id, entry))

        if matches:
            log_database_operation(
                self._logger,
                "DELETE",
                "CarScheduleEntryModel",
                car_id=str(car_id),
                entry_count=len(matches)
            )
            await self._session.execute(
                delete(CarScheduleEntryModel).where(
                    CarScheduleEntryModel.id.in_([entry_id for entry_id, _ in matches])
                )
            )
            car_model.updated_at = datetime.utcnow()
            await self._session.flush()

        return [entry for _, entry in matches]

    async def _find_model(self, car_id: UUID) -> Optional[CarModel]:
        stmt = select(CarModel).where(CarModel.id == car_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _load_entries(self, car_id: UUID) -> List[CarScheduleEntryModel]:
        stmt = select(CarScheduleEntryModel).where(
            CarScheduleEntryModel.car_id == car_id
        ).order_by(CarScheduleEntryModel.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _entry_models(car_id: UUID, entries: Iterable[ScheduleEntry]) -> List[CarScheduleEntryModel]:
        return [
            CarScheduleEntryModel(
                car_id=car_id,
                dates=_dump_dates(entry.dates),
                availability=entry.availability,
                booking_id=entry.booking_id
            )
            for entry in entries
        ]

    @staticmethod
    def _entry_to_value_object(model: CarScheduleEntryModel) -> ScheduleEntry:
        return ScheduleEntry(
            dates=_load_dates(model.dates),
            availability=model.availability,
            booking_id=model.booking_id
        )


class SQLAlchemyTransactionManager(TransactionManager):
    """Atomic units backed by one database transaction each."""

    def __init__(self, database_manager: DatabaseManager, timeout_seconds: Optional[float] = None):
        self._database = database_manager
        self._timeout_seconds = timeout_seconds
        self._logger = get_logger(__name__)

    async def run_in_transaction(self, work: Callable[[TransactionContext], Awaitable[T]]) -> T:
        try:
            async with self._database.transaction() as session:
                context = TransactionContext(
                    bookings=SQLAlchemyBookingRepository(session),
                    cars=SQLAlchemyCarRepository(session),
                )
                if self._timeout_seconds:
                    return await asyncio.wait_for(work(context), self._timeout_seconds)
                return await work(context)
        except BookingError:
            raise
        except asyncio.TimeoutError as exc:
            self._logger.error("Transaction timed out and was rolled back")
            raise StorageFailure("Storage operation timed out") from exc
        except SQLAlchemyError as exc:
            self._logger.error("Transaction failed and was rolled back", exc_info=True)
            raise StorageFailure(f"Storage operation failed: {exc}") from exc
        except Exception as exc:
            self._logger.error("Unexpected error inside transaction", exc_info=True)
            raise StorageFailure(f"Storage operation failed: {exc}") from exc

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[TransactionContext]:
        try:
            async with self._database.get_session() as session:
                yield TransactionContext(
                    bookings=SQLAlchemyBookingRepository(session),
                    cars=SQLAlchemyCarRepository(session),
                )
        except SQLAlchemyError as exc:
            self._logger.error("Read failed", exc_info=True)
            raise StorageFailure(f"Storage operation failed: {exc}") from exc
