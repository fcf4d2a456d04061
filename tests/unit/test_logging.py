"""Unit tests for structured logging helpers."""

import json
import logging

from src.car_rental.infrastructure.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    clear_correlation_id,
    get_correlation_id,
    log_booking_transition,
    set_correlation_id,
)


class _CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestJSONFormatter:
    """Test cases for JSON log formatting."""

    def test_format_includes_correlation_and_extra(self):
        """Test that records render as JSON with their extra fields."""
        set_correlation_id("req-123")
        try:
            record = logging.LogRecord("car_rental", logging.INFO, __file__, 10, "hello", None, None)
            record.booking_id = "abc"
            CorrelationIDFilter().filter(record)

            entry = json.loads(JSONFormatter().format(record))
        finally:
            clear_correlation_id()

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["service"] == "car-rental-backoffice"
        assert entry["correlation_id"] == "req-123"
        assert entry["extra"]["booking_id"] == "abc"
        assert get_correlation_id() is None


def test_log_booking_transition():
    logger = logging.getLogger("tests.transition")
    handler = _CaptureHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        log_booking_transition(logger, "b1", "pending", "completed", car_id="c1")
    finally:
        logger.removeHandler(handler)

    record = handler.records[0]
    assert record.getMessage() == "Booking b1 moved pending -> completed"
    assert record.from_status == "pending"
    assert record.to_status == "completed"
    assert record.car_id == "c1"
