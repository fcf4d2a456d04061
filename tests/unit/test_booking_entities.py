"""Unit tests for booking domain entities and the booking state machine."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from src.car_rental.domain.booking_state import BOOKING_TRANSITIONS, assert_booking_transition, is_terminal
from src.car_rental.domain.entities.booking import (
    Booking,
    BookingAction,
    BookingStatus,
    CustomerInfo,
    generate_booking_number,
)
from src.car_rental.domain.exceptions import InvalidState
from src.car_rental.domain.value_objects.schedule import ScheduleEntry

from tests.factories import JUNE_1, JUNE_2, build_booking, build_car, build_customer


class TestCustomerInfo:
    """Test cases for CustomerInfo value object."""

    def test_valid_customer(self):
        """Test creating a customer normalises whitespace and email case."""
        customer = CustomerInfo(
            full_name="  Jane Doe ",
            email=" Jane.Doe@Example.COM ",
            phone="+254700000000",
            id_number="12345678"
        )

        assert customer.full_name == "Jane Doe"
        assert customer.email == "jane.doe@example.com"

    def test_missing_fields(self):
        """Test that every customer field is required."""
        with pytest.raises(ValueError, match="Customer full name is required"):
            CustomerInfo(full_name=" ", email="a@b.co", phone="1", id_number="2")

        with pytest.raises(ValueError, match="Customer phone is required"):
            CustomerInfo(full_name="Jane", email="a@b.co", phone="", id_number="2")

    def test_invalid_email(self):
        """Test email format validation."""
        for email in ["jane", "jane@example", "jane doe@example.com"]:
            with pytest.raises(ValueError, match="Invalid email format"):
                CustomerInfo(full_name="Jane", email=email, phone="1", id_number="2")


class TestBookingEntity:
    """Test cases for Booking entity."""

    def test_new_booking_defaults(self):
        """Test a freshly created booking."""
        car = build_car()
        booking = build_booking(car)

        assert booking.status == BookingStatus.PENDING
        assert booking.car_id == car.id
        assert booking.booking_number.startswith("BK-")
        assert booking.occupied_dates == (JUNE_1, JUNE_2)
        assert booking.created_at == booking.updated_at
        assert booking.is_terminal is False

    def test_booking_requires_dates(self):
        """Test that a booking must occupy at least one date."""
        with pytest.raises(ValueError, match="at least one date"):
            Booking(customer=build_customer(), car_id=uuid4(), total_amount=Decimal("10"), schedule=[])

    def test_negative_amount_rejected(self):
        """Test that negative totals are rejected."""
        with pytest.raises(ValueError, match="cannot be negative"):
            Booking(
                customer=build_customer(),
                car_id=uuid4(),
                total_amount=Decimal("-1"),
                schedule=[ScheduleEntry(dates=(JUNE_1,))]
            )

    def test_occupied_dates_merges_entries(self):
        """Test that occupied dates flatten every entry in order."""
        booking = Booking(
            customer=build_customer(),
            car_id=uuid4(),
            total_amount=Decimal("10"),
            schedule=[
                ScheduleEntry(dates=(date(2024, 6, 3),)),
                ScheduleEntry(dates=(JUNE_1, JUNE_2)),
            ]
        )

        assert booking.occupied_dates == (JUNE_1, JUNE_2, date(2024, 6, 3))

    def test_confirm_then_complete(self):
        """Test the happy lifecycle path."""
        booking = build_booking(build_car())

        assert booking.confirm() is True
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.complete() is True
        assert booking.status == BookingStatus.COMPLETED
        assert booking.is_terminal is True

    def test_same_status_is_noop(self):
        """Test that re-applying the current status changes nothing."""
        booking = build_booking(build_car(), status=BookingStatus.CONFIRMED)
        updated_at = booking.updated_at

        assert booking.confirm() is False
        assert booking.updated_at == updated_at

    def test_completed_booking_cannot_be_cancelled(self):
        """Test that a completed booking is terminal."""
        booking = build_booking(build_car(), status=BookingStatus.COMPLETED)

        with pytest.raises(InvalidState, match="Cannot modify a completed booking"):
            booking.cancel()
        assert booking.status == BookingStatus.COMPLETED

    def test_cancelled_booking_cannot_be_completed(self):
        """Test that a cancelled booking is terminal."""
        booking = build_booking(build_car(), status=BookingStatus.CANCELLED)

        with pytest.raises(InvalidState, match="Cannot complete a cancelled booking"):
            booking.complete()

    def test_apply_action(self):
        """Test applying an explicit action."""
        booking = build_booking(build_car())

        assert booking.apply(BookingAction.CANCEL) is True
        assert booking.status == BookingStatus.CANCELLED

    def test_equality_by_id(self):
        """Test that bookings compare by identity."""
        car = build_car()
        booking = build_booking(car)
        same = Booking(
            customer=booking.customer,
            car_id=car.id,
            total_amount=booking.total_amount,
            schedule=booking.schedule,
            booking_id=booking.id
        )

        assert booking == same
        assert hash(booking) == hash(same)
        assert booking != build_booking(car)


class TestBookingStateMachine:
    """Test cases for the booking transition table."""

    def test_terminal_statuses(self):
        """Test which statuses are terminal."""
        assert is_terminal(BookingStatus.COMPLETED) is True
        assert is_terminal(BookingStatus.CANCELLED) is True
        assert is_terminal(BookingStatus.PENDING) is False
        assert is_terminal(BookingStatus.CONFIRMED) is False

    def test_allowed_transitions(self):
        """Test that every listed transition passes."""
        for current, targets in BOOKING_TRANSITIONS.items():
            for target in targets:
                assert_booking_transition(current, target)

    def test_confirmed_cannot_return_to_pending(self):
        """Test that a confirmed booking does not go back to pending."""
        with pytest.raises(InvalidState, match="confirmed -> pending"):
            assert_booking_transition(BookingStatus.CONFIRMED, BookingStatus.PENDING)

    def test_terminal_messages(self):
        """Test the messages raised when leaving a terminal status."""
        cases = [
            (BookingStatus.COMPLETED, BookingStatus.COMPLETED, "Booking is already completed"),
            (BookingStatus.COMPLETED, BookingStatus.CONFIRMED, "Cannot modify a completed booking"),
            (BookingStatus.CANCELLED, BookingStatus.CANCELLED, "Booking is already cancelled"),
            (BookingStatus.CANCELLED, BookingStatus.CONFIRMED, "Cannot modify a cancelled booking"),
        ]

        for current, target, message in cases:
            with pytest.raises(InvalidState, match=message):
                assert_booking_transition(current, target)


def test_action_targets():
    assert BookingAction.CONFIRM.target_status == BookingStatus.CONFIRMED
    assert BookingAction.CANCEL.target_status == BookingStatus.CANCELLED
    assert BookingAction.COMPLETE.target_status == BookingStatus.COMPLETED


def test_generate_booking_number():
    number = generate_booking_number()

    assert number.startswith("BK-")
    assert len(number) == 11
    assert number[3:] == number[3:].upper()
