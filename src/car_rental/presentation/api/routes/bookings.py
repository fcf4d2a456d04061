"""Booking endpoints: creation, lookup and lifecycle transitions."""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from src.car_rental.application.services.transition_handler import parse_booking_id
from src.car_rental.domain.entities.booking import CustomerInfo
from src.car_rental.domain.exceptions import BookingError, NotFound
from src.car_rental.infrastructure.services import ServiceFactory, get_service_factory
from src.car_rental.presentation.api.schemas.booking_schemas import (
    BookingActionResponse,
    BookingCreateRequest,
    BookingResponse,
    ErrorResponse,
)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/", status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_booking(
    request: BookingCreateRequest,
    services: ServiceFactory = Depends(get_service_factory)
) -> BookingResponse:
    """Create a pending booking for a car."""
    try:
        customer = CustomerInfo(
            full_name=request.customer.full_name,
            email=request.customer.email,
            phone=request.customer.phone,
            id_number=request.customer.id_number
        )
        details = await services.get_booking_service().create_booking(
            customer=customer,
            car_id=request.car_id,
            dates=request.dates,
            total_amount=request.total_amount,
            special_request=request.special_request
        )
    except BookingError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return BookingResponse.from_details(details)


@router.get("/", responses=ERROR_RESPONSES)
async def list_bookings(
    services: ServiceFactory = Depends(get_service_factory)
) -> List[BookingResponse]:
    """List bookings, newest first, with car details populated."""
    details = await services.get_booking_service().list_bookings()
    return [BookingResponse.from_details(item) for item in details]


@router.get("/{booking_id}", responses=ERROR_RESPONSES)
async def get_booking(
    booking_id: str = Path(..., description="Booking ID"),
    services: ServiceFactory = Depends(get_service_factory)
) -> BookingResponse:
    """Get booking by ID."""
    details = await services.get_booking_service().get_booking_details(parse_booking_id(booking_id))
    if not details:
        raise NotFound("Booking not found")
    return BookingResponse.from_details(details)


@router.patch("/{booking_id}", responses=ERROR_RESPONSES)
async def update_booking_status(
    booking_id: str = Path(..., description="Booking ID"),
    body: Optional[Dict[str, Any]] = Body(None),
    services: ServiceFactory = Depends(get_service_factory)
) -> BookingActionResponse:
    """Confirm, cancel or complete a booking.

    ``{"action": "complete"}`` and ``{"status": "completed"}`` both complete
    the booking and block its dates on the car; ``{"status": "cancelled"}``
    releases the dates this booking had blocked.
    """
    outcome = await services.get_transition_handler().update_booking_status(booking_id, body)
    return BookingActionResponse(
        message=outcome.message,
        booking=BookingResponse.from_details(outcome.details)
    )


@router.patch("/{booking_id}/complete", responses=ERROR_RESPONSES)
async def complete_booking(
    booking_id: str = Path(..., description="Booking ID"),
    services: ServiceFactory = Depends(get_service_factory)
) -> BookingActionResponse:
    """Complete a booking and block its dates on the car."""
    outcome = await services.get_transition_handler().complete_booking(booking_id)
    return BookingActionResponse(
        message=outcome.message,
        booking=BookingResponse.from_details(outcome.details)
    )
