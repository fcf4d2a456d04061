"""Pydantic schemas for booking API requests and responses."""

from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.car_rental.application.services.booking_service import BookingDetails
from src.car_rental.domain.entities.booking import BookingStatus
from src.car_rental.domain.entities.car import Car, CarSummary
from src.car_rental.domain.value_objects.schedule import Availability, ScheduleEntry


class CustomerInfoRequest(BaseModel):
    """Customer snapshot supplied when booking."""
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    id_number: str = Field(..., min_length=1, max_length=50)


class BookingCreateRequest(BaseModel):
    """Request model for creating a booking."""
    customer: CustomerInfoRequest
    car_id: UUID = Field(..., description="Car being reserved")
    dates: List[date] = Field(..., min_length=1, description="Calendar dates the booking occupies")
    total_amount: Decimal = Field(..., ge=0)
    special_request: Optional[str] = Field(None, max_length=2000)

    @field_validator('special_request')
    @classmethod
    def blank_to_none(cls, v):
        """Treat an empty special request as absent."""
        if v is not None and not v.strip():
            return None
        return v


class ScheduleEntryResponse(BaseModel):
    """Response model for one schedule entry."""
    dates: List[date]
    availability: Availability
    booking_id: Optional[UUID] = None

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_value_object(cls, entry: ScheduleEntry) -> "ScheduleEntryResponse":
        return cls(dates=list(entry.dates), availability=entry.availability, booking_id=entry.booking_id)


class CarSummaryResponse(BaseModel):
    """Car fields populated on a booking."""
    id: UUID
    model: str
    registration_number: str
    image: Optional[str] = None
    price_per_day: Decimal

    @classmethod
    def from_summary(cls, summary: CarSummary) -> "CarSummaryResponse":
        return cls(
            id=summary.id,
            model=summary.model,
            registration_number=summary.registration_number,
            image=summary.image,
            price_per_day=summary.price_per_day
        )


class CustomerInfoResponse(BaseModel):
    full_name: str
    email: str
    phone: str
    id_number: str


class BookingResponse(BaseModel):
    """Response model for booking operations."""
    id: UUID
    booking_number: str
    customer: CustomerInfoResponse
    car_id: UUID
    car: Optional[CarSummaryResponse] = None
    total_amount: Decimal
    status: BookingStatus
    special_request: Optional[str] = None
    schedule: List[ScheduleEntryResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_details(cls, details: BookingDetails) -> "BookingResponse":
        booking = details.booking
        return cls(
            id=booking.id,
            booking_number=booking.booking_number,
            customer=CustomerInfoResponse(
                full_name=booking.customer.full_name,
                email=booking.customer.email,
                phone=booking.customer.phone,
                id_number=booking.customer.id_number
            ),
            car_id=booking.car_id,
            car=CarSummaryResponse.from_summary(details.car) if details.car else None,
            total_amount=booking.total_amount,
            status=booking.status,
            special_request=booking.special_request,
            schedule=[ScheduleEntryResponse.from_value_object(entry) for entry in booking.schedule],
            created_at=booking.created_at,
            updated_at=booking.updated_at
        )


class BookingActionResponse(BaseModel):
    """Response model for booking status changes."""
    message: str
    booking: BookingResponse


class CarResponse(BaseModel):
    """Response model for a car with its availability schedule."""
    id: UUID
    model: str
    registration_number: str
    image: Optional[str] = None
    price_per_day: Decimal
    schedule: List[ScheduleEntryResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, car: Car) -> "CarResponse":
        return cls(
            id=car.id,
            model=car.model,
            registration_number=car.registration_number,
            image=car.image,
            price_per_day=car.price_per_day,
            schedule=[ScheduleEntryResponse.from_value_object(entry) for entry in car.schedule],
            created_at=car.created_at,
            updated_at=car.updated_at
        )


class BlockedDatesResponse(BaseModel):
    """Dates on which a car is unavailable."""
    car_id: UUID
    blocked_dates: List[date]
    total_count: int


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    type: str
