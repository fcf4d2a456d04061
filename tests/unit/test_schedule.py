"""Unit tests for schedule value objects."""

import pytest
from datetime import date
from uuid import uuid4

from src.car_rental.domain.value_objects.schedule import Availability, ScheduleEntry, normalize_dates


class TestAvailability:
    """Test cases for the Availability marker."""

    def test_from_raw_legacy_markers(self):
        """Test that legacy stored markers map onto the enum."""
        assert Availability.from_raw(None) is Availability.BLOCKED
        assert Availability.from_raw(False) is Availability.BLOCKED
        assert Availability.from_raw(True) is Availability.OPEN

    def test_from_raw_values(self):
        """Test mapping of stored string values."""
        assert Availability.from_raw("blocked") is Availability.BLOCKED
        assert Availability.from_raw("open") is Availability.OPEN
        assert Availability.from_raw(Availability.UNKNOWN) is Availability.UNKNOWN

    def test_from_raw_unrecognised_value(self):
        """Test that unknown markers are preserved as UNKNOWN rather than failing."""
        assert Availability.from_raw("maybe") is Availability.UNKNOWN
        assert Availability.from_raw(42) is Availability.UNKNOWN


class TestScheduleEntry:
    """Test cases for ScheduleEntry."""

    def test_dates_are_normalised(self):
        """Test that dates are de-duplicated and sorted."""
        entry = ScheduleEntry(dates=(date(2024, 6, 2), date(2024, 6, 1), date(2024, 6, 2)))

        assert entry.dates == (date(2024, 6, 1), date(2024, 6, 2))
        assert entry.availability is Availability.OPEN
        assert entry.booking_id is None

    def test_empty_dates_rejected(self):
        """Test that an entry needs at least one date."""
        with pytest.raises(ValueError, match="at least one date"):
            ScheduleEntry(dates=())

    def test_raw_availability_is_coerced(self):
        """Test that a raw availability marker is converted on construction."""
        entry = ScheduleEntry(dates=(date(2024, 6, 1),), availability=None)

        assert entry.availability is Availability.BLOCKED
        assert entry.is_blocking is True

    def test_blocking_factory(self):
        """Test creating a single-date blocking entry for a booking."""
        booking_id = uuid4()
        entry = ScheduleEntry.blocking(booking_id, date(2024, 6, 1))

        assert entry.dates == (date(2024, 6, 1),)
        assert entry.is_blocking is True
        assert entry.introduced_by(booking_id) is True
        assert entry.introduced_by(uuid4()) is False

    def test_open_entry_is_never_introduced_by_booking(self):
        """Test that only blocking entries are attributed to a booking."""
        booking_id = uuid4()
        entry = ScheduleEntry(dates=(date(2024, 6, 1),), availability=Availability.OPEN, booking_id=booking_id)

        assert entry.introduced_by(booking_id) is False

    def test_intersects(self):
        """Test date intersection checks."""
        entry = ScheduleEntry(dates=(date(2024, 6, 1), date(2024, 6, 3)))

        assert entry.intersects([date(2024, 6, 3)]) is True
        assert entry.intersects([date(2024, 6, 2)]) is False
        assert entry.intersects([]) is False

    def test_entries_are_immutable(self):
        """Test that schedule entries cannot be mutated."""
        entry = ScheduleEntry(dates=(date(2024, 6, 1),))

        with pytest.raises(AttributeError):
            entry.availability = Availability.BLOCKED


def test_normalize_dates():
    assert normalize_dates([date(2024, 6, 3), date(2024, 6, 1), date(2024, 6, 3)]) == (
        date(2024, 6, 1),
        date(2024, 6, 3),
    )
    assert normalize_dates([]) == ()
