"""Boundary handler for booking status update requests."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import UUID

from .booking_service import BookingDetails, BookingService
from ...domain.entities.booking import BookingAction, BookingStatus
from ...domain.exceptions import InvalidArgument, NotFound
from ...infrastructure.logging import get_logger

logger = get_logger(__name__)

INVALID_STATUS_MESSAGE = "Invalid status. Use action: 'complete' for completing bookings."

# Raw status values accepted on the regular update path.
REGULAR_UPDATE_STATUSES = {
    BookingStatus.PENDING.value: BookingStatus.PENDING,
    BookingStatus.CONFIRMED.value: BookingStatus.CONFIRMED,
    BookingStatus.CANCELLED.value: BookingStatus.CANCELLED,
}

EXPLICIT_ACTIONS = {
    BookingAction.CONFIRM.value: BookingAction.CONFIRM,
    BookingAction.CANCEL.value: BookingAction.CANCEL,
    BookingAction.COMPLETE.value: BookingAction.COMPLETE,
}


def parse_booking_id(raw_id: Any) -> UUID:
    """Validate the syntax of a booking identifier."""
    if isinstance(raw_id, UUID):
        return raw_id
    try:
        return UUID(str(raw_id).strip())
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidArgument("Invalid booking ID") from exc


@dataclass(frozen=True)
class TransitionRequest:
    """A status update body resolved to exactly one target status."""

    target: BookingStatus

    @classmethod
    def from_body(cls, body: Optional[Mapping[str, Any]]) -> "TransitionRequest":
        """Resolve an ``{action, status}`` body.

        ``action == "complete"`` and ``status == "completed"`` both mean
        complete; any other status outside pending/confirmed/cancelled is
        rejected.
        """
        body = body or {}
        action = body.get("action")
        status = body.get("status")

        if action == BookingAction.COMPLETE.value or status == BookingStatus.COMPLETED.value:
            return cls(BookingStatus.COMPLETED)

        if status is not None:
            if not isinstance(status, str) or status not in REGULAR_UPDATE_STATUSES:
                raise InvalidArgument(INVALID_STATUS_MESSAGE)
            return cls(REGULAR_UPDATE_STATUSES[status])

        if isinstance(action, str) and action in EXPLICIT_ACTIONS:
            return cls(EXPLICIT_ACTIONS[action].target_status)

        raise InvalidArgument(INVALID_STATUS_MESSAGE)

    @property
    def verb(self) -> str:
        return self.target.value


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of a successful status update."""

    details: BookingDetails
    message: str


class BookingTransitionHandler:
    """Validates update requests and dispatches them to the status machine.

    Performs no writes of its own: every mutation happens inside the status
    machine's atomic unit.
    """

    def __init__(self, booking_service: BookingService):
        self._booking_service = booking_service

    async def update_booking_status(
        self,
        raw_booking_id: Any,
        body: Optional[Mapping[str, Any]]
    ) -> TransitionOutcome:
        """Apply a status update body to a booking."""
        booking_id = parse_booking_id(raw_booking_id)
        request = TransitionRequest.from_body(body)
        return await self.apply(booking_id, request)

    async def complete_booking(self, raw_booking_id: Any) -> TransitionOutcome:
        booking_id = parse_booking_id(raw_booking_id)
        return await self.apply(booking_id, TransitionRequest(BookingStatus.COMPLETED))

    async def apply(self, booking_id: UUID, request: TransitionRequest) -> TransitionOutcome:
        logger.debug(
            "Dispatching booking transition",
            extra={"booking_id": str(booking_id), "requested_status": request.verb}
        )
        await self._booking_service.status_machine.transition(booking_id, request.target)

        details = await self._booking_service.get_booking_details(booking_id)
        if details is None:
            raise NotFound("Booking not found")

        return TransitionOutcome(
            details=details,
            message=f"Booking {request.verb} successfully",
        )
