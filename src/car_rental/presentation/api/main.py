"""FastAPI main application module."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from ...domain.exceptions import BookingError, StorageFailure
from ...infrastructure.logging import LoggingConfig
from ...infrastructure.services import initialize_services, shutdown_services
from .routes import health, bookings, cars
from .config import Settings, get_settings
from .middleware import RequestResponseLoggingMiddleware


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    configure_logging(app.state.settings)
    logger.info("Starting Car Rental Back-Office API")
    await initialize_services(app.state.settings)

    yield

    logger.info("Shutting down Car Rental Back-Office API")
    await shutdown_services()


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        """Turn booking failures into structured responses."""
        if isinstance(exc, StorageFailure):
            logger.error(f"Storage failure on {request.url}: {exc.message}")
        else:
            logger.warning(f"{exc.error_type} on {request.url}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "type": exc.error_type
            }
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "type": "validation_error"
            }
        )

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        """Handle runtime errors from business logic."""
        logger.error(f"Runtime error on {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error occurred",
                "type": "runtime_error"
            }
        )


def configure_logging(settings: Settings) -> None:
    LoggingConfig(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_enable_file,
    ).setup_logging()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Car Rental Back-Office",
        description="Booking lifecycle and car availability API",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = settings
    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )
    app.include_router(
        cars.router,
        prefix=f"{settings.api_prefix}/cars",
        tags=["cars"]
    )

    return app


app = create_app()
