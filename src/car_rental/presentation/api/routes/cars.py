"""Car availability endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from src.car_rental.application.services.booking_service import BookingDetails
from src.car_rental.domain.exceptions import InvalidArgument, NotFound
from src.car_rental.infrastructure.services import ServiceFactory, get_service_factory
from src.car_rental.presentation.api.schemas.booking_schemas import (
    BlockedDatesResponse,
    BookingResponse,
    CarResponse,
    ErrorResponse,
)

router = APIRouter()


def _parse_car_id(raw_id: str) -> UUID:
    try:
        return UUID(raw_id)
    except ValueError as exc:
        raise InvalidArgument("Invalid car ID format") from exc


@router.get("/{car_id}", responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_car(
    car_id: str = Path(..., description="Car ID"),
    services: ServiceFactory = Depends(get_service_factory)
) -> CarResponse:
    """Get a car with its availability schedule."""
    car = await services.get_booking_service().get_car(_parse_car_id(car_id))
    if not car:
        raise NotFound("Car not found")
    return CarResponse.from_entity(car)


@router.get("/{car_id}/blocked-dates", responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_blocked_dates(
    car_id: str = Path(..., description="Car ID"),
    services: ServiceFactory = Depends(get_service_factory)
) -> BlockedDatesResponse:
    """Get the dates on which a car is unavailable."""
    car = await services.get_booking_service().get_car(_parse_car_id(car_id))
    if not car:
        raise NotFound("Car not found")
    blocked = car.blocked_dates()
    return BlockedDatesResponse(car_id=car.id, blocked_dates=list(blocked), total_count=len(blocked))


@router.get("/{car_id}/bookings", responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get_car_bookings(
    car_id: str = Path(..., description="Car ID"),
    services: ServiceFactory = Depends(get_service_factory)
) -> List[BookingResponse]:
    """Get every booking of a car, newest first."""
    booking_service = services.get_booking_service()
    car = await booking_service.get_car(_parse_car_id(car_id))
    if not car:
        raise NotFound("Car not found")

    summary = car.summary()
    bookings = await booking_service.get_car_bookings(car.id)
    return [BookingResponse.from_details(BookingDetails(booking=b, car=summary)) for b in bookings]
