"""SQLAlchemy database models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Integer, Text, Enum as SQLEnum, ForeignKey, JSON, Numeric, Uuid
from sqlalchemy.orm import declarative_base, relationship

from src.car_rental.domain.value_objects.booking_status import BookingStatus
from src.car_rental.domain.value_objects.schedule import Availability

Base = declarative_base()


class CarModel(Base):
    """SQLAlchemy model for cars."""

    __tablename__ = "cars"

    id = Column(Uuid, primary_key=True, default=uuid4)

    model = Column(String(120), nullable=False)
    registration_number = Column(String(32), nullable=False, unique=True, index=True)
    image = Column(String(500), nullable=True)
    price_per_day = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    schedule_entries = relationship(
        "CarScheduleEntryModel",
        back_populates="car",
        cascade="all, delete-orphan",
        order_by="CarScheduleEntryModel.id",
    )

    def __repr__(self) -> str:
        return f"<CarModel(id={self.id}, registration_number='{self.registration_number}')>"


class CarScheduleEntryModel(Base):
    """One entry of a car's availability schedule; ``id`` order is insertion order."""

    __tablename__ = "car_schedule_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Uuid, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)

    # ISO-8601 date strings
    dates = Column(JSON, nullable=False)
    availability = Column(SQLEnum(Availability), nullable=False, default=Availability.OPEN)

    # Booking that introduced a blocking entry, when known
    booking_id = Column(Uuid, nullable=True, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    car = relationship("CarModel", back_populates="schedule_entries")

    def __repr__(self) -> str:
        return f"<CarScheduleEntryModel(car_id={self.car_id}, dates={self.dates}, availability='{self.availability}')>"


class BookingModel(Base):
    """SQLAlchemy model for bookings."""

    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid4)
    booking_number = Column(String(20), nullable=False, unique=True, index=True)

    # Customer snapshot taken at booking time
    customer_full_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)
    customer_id_number = Column(String(50), nullable=False)

    car_id = Column(Uuid, ForeignKey("cars.id"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True)
    special_request = Column(Text, nullable=True)

    # [{"dates": ["2024-06-01"], "availability": "open"}, ...]
    schedule = Column(JSON, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<BookingModel(id={self.id}, booking_number='{self.booking_number}', status='{self.status}')>"
