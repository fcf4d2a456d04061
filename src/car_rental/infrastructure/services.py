"""Dependency injection and service factory."""

from typing import Optional

from src.car_rental.application.ports.repositories import TransactionManager
from src.car_rental.application.services.booking_service import BookingService
from src.car_rental.application.services.transition_handler import BookingTransitionHandler
from src.car_rental.infrastructure.database.connection import DatabaseManager
from src.car_rental.infrastructure.logging import get_logger
from src.car_rental.infrastructure.repositories.memory_repositories import InMemoryTransactionManager
from src.car_rental.infrastructure.repositories.sql_repositories import SQLAlchemyTransactionManager
from src.car_rental.presentation.api.config import Settings, get_settings

logger = get_logger(__name__)


class ServiceFactory:
    """Factory for creating application services with proper dependencies."""

    def __init__(
        self,
        transactions: TransactionManager,
        database_manager: Optional[DatabaseManager] = None
    ):
        self.transactions = transactions
        self.database_manager = database_manager
        self._connected = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceFactory":
        """Build the factory for the configured storage backend."""
        if settings.storage_backend == "memory":
            return cls(InMemoryTransactionManager(timeout_seconds=settings.transaction_timeout_seconds))

        database_manager = DatabaseManager(
            settings.database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping
        )
        transactions = SQLAlchemyTransactionManager(
            database_manager,
            timeout_seconds=settings.transaction_timeout_seconds
        )
        return cls(transactions, database_manager)

    async def initialize(self):
        """Initialize the service factory."""
        if not self._connected and self.database_manager:
            await self.database_manager.connect()
        self._connected = True

    async def shutdown(self):
        """Shutdown the service factory."""
        if self._connected and self.database_manager:
            await self.database_manager.disconnect()
        self._connected = False

    def get_booking_service(self) -> BookingService:
        return BookingService(self.transactions)

    def get_transition_handler(self) -> BookingTransitionHandler:
        return BookingTransitionHandler(self.get_booking_service())


# Global service factory instance
_service_factory: ServiceFactory | None = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        settings = get_settings()
        logger.info("Creating service factory", extra={"storage_backend": settings.storage_backend})
        _service_factory = ServiceFactory.from_settings(settings)

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (tests and scripts)."""
    global _service_factory
    _service_factory = factory


async def initialize_services(settings: Optional[Settings] = None):
    """Initialize application services.

    When no factory is installed yet, ``settings`` (if given) decides the
    storage backend instead of the environment.
    """
    if _service_factory is None and settings is not None:
        set_service_factory(ServiceFactory.from_settings(settings))
    factory = get_service_factory()
    await factory.initialize()


async def shutdown_services():
    """Shutdown application services."""
    factory = get_service_factory()
    await factory.shutdown()
