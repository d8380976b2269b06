"""Error taxonomy for the event join workflow."""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Stable, client-facing error codes."""

    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    ALREADY_JOINED = "ALREADY_JOINED"
    DUPLICATE_REQUEST = "DUPLICATE_REQUEST"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    WAITLIST_UNAVAILABLE = "WAITLIST_UNAVAILABLE"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


class JoinWorkflowError(Exception):
    """Base error with code, HTTP status and a user-safe message."""

    code: ErrorCode
    status_code: int = 400

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code.value, "detail": self.message, **self.extra}


class NotFoundError(JoinWorkflowError):
    code = ErrorCode.NOT_FOUND
    status_code = 404

    @classmethod
    def event(cls, event_id: int) -> "NotFoundError":
        return cls(f"Event {event_id} not found")

    @classmethod
    def join_request(cls, request_id: int) -> "NotFoundError":
        return cls(f"Join request {request_id} not found")


class ForbiddenError(JoinWorkflowError):
    code = ErrorCode.FORBIDDEN
    status_code = 403

    def __init__(self, action: str) -> None:
        super().__init__(f"Only the event organizer can {action} requests")


class AlreadyJoinedError(JoinWorkflowError):
    code = ErrorCode.ALREADY_JOINED
    status_code = 409

    def __init__(self) -> None:
        super().__init__("You have already joined this event")


class DuplicateRequestError(JoinWorkflowError):
    code = ErrorCode.DUPLICATE_REQUEST
    status_code = 409

    def __init__(self) -> None:
        super().__init__("You already have a pending join request")


class CapacityExceededError(JoinWorkflowError):
    code = ErrorCode.CAPACITY_EXCEEDED
    status_code = 409

    def __init__(self, capacity_max: int) -> None:
        super().__init__("Event is at full capacity", capacity_max=capacity_max)


class PaymentRequiredError(JoinWorkflowError):
    """Raised for paid events joined without a transaction code.

    Carries the amount and currency so the client can render a payment prompt.
    """

    code = ErrorCode.PAYMENT_REQUIRED
    status_code = 402

    def __init__(self, amount: Optional[float], currency: Optional[str]) -> None:
        super().__init__(
            "Transaction code is required for paid events",
            amount=amount,
            currency=currency,
        )
        self.amount = amount
        self.currency = currency


class AlreadyProcessedError(JoinWorkflowError):
    code = ErrorCode.ALREADY_PROCESSED
    status_code = 400

    def __init__(self, status: str) -> None:
        super().__init__("Request already processed", status=status)


class NotAParticipantError(JoinWorkflowError):
    code = ErrorCode.NOT_A_PARTICIPANT
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Not a participant")


class WaitlistUnavailableError(JoinWorkflowError):
    code = ErrorCode.WAITLIST_UNAVAILABLE
    status_code = 409


class ConcurrentModificationError(JoinWorkflowError):
    code = ErrorCode.CONCURRENT_MODIFICATION
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Event roster changed concurrently. Please try again.")
