"""
Pydantic schemas for the join workflow endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from huddle.schemas.event import EventResponse, EventSummary, JoinRequestResponse


class JoinEventRequest(BaseModel):
    transaction_code: Optional[str] = Field(None, min_length=1, max_length=255)


class JoinEventResponse(BaseModel):
    success: bool = True
    message: str
    requires_approval: bool
    event: EventResponse


class RequestDecisionResponse(BaseModel):
    message: str
    event: EventResponse


class LeaveEventResponse(BaseModel):
    message: str
    promoted_user_id: Optional[int]
    event: EventResponse


class WaitlistResponse(BaseModel):
    message: str
    position: int
    event: EventResponse


class MyJoinRequestItem(BaseModel):
    event: EventSummary
    request: JoinRequestResponse


class OrganizerPendingRequestItem(BaseModel):
    request_id: int
    event: EventSummary
    user_id: int
    transaction_code: str
    requested_at: datetime
