from huddle.domain.errors import ErrorCode, JoinWorkflowError
from huddle.domain.roster import (
    EventRoster,
    JoinOutcome,
    JoinRequestEntry,
    Pricing,
    RequestStatus,
)

__all__ = [
    "ErrorCode",
    "JoinWorkflowError",
    "EventRoster",
    "JoinOutcome",
    "JoinRequestEntry",
    "Pricing",
    "RequestStatus",
]
