from huddle.schemas.user import UserCreate, UserResponse, UserLogin, Token
from huddle.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventSummary,
    EventListResponse,
    JoinRequestResponse,
)
from huddle.schemas.join import (
    JoinEventRequest,
    JoinEventResponse,
    LeaveEventResponse,
    MyJoinRequestItem,
    OrganizerPendingRequestItem,
    RequestDecisionResponse,
    WaitlistResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventUpdate", "EventResponse", "EventSummary", "EventListResponse",
    "JoinRequestResponse",
    "JoinEventRequest", "JoinEventResponse", "LeaveEventResponse", "MyJoinRequestItem",
    "OrganizerPendingRequestItem", "RequestDecisionResponse", "WaitlistResponse",
]
