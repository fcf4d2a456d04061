"""Shared fixtures for the booking lifecycle tests."""

import pytest
import pytest_asyncio

from src.car_rental.domain.entities.car import Car
from src.car_rental.infrastructure.database.connection import DatabaseManager
from src.car_rental.infrastructure.repositories.memory_repositories import InMemoryTransactionManager

from tests.factories import build_car


@pytest.fixture
def car() -> Car:
    return build_car()


@pytest.fixture
def transactions() -> InMemoryTransactionManager:
    return InMemoryTransactionManager()


@pytest.fixture
def seed(transactions):
    """Store cars and bookings directly in the in-memory backend."""

    def _seed(*records):
        for record in records:
            if isinstance(record, Car):
                transactions.store.cars[record.id] = record
            else:
                transactions.store.bookings[record.id] = record
        return records

    return _seed


@pytest_asyncio.fixture
async def database(tmp_path):
    """Connected database manager over a throwaway SQLite file with an empty schema."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'car_rental.db'}")
    await manager.connect()
    await manager.create_tables()
    yield manager
    await manager.disconnect()
