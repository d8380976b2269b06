"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

EventStatus = Literal["draft", "published", "cancelled", "completed"]
PricingType = Literal["free", "paid"]

# Columns an update may omit but never clear
NON_NULLABLE_UPDATE_FIELDS = frozenset({
    "title", "sport", "start_date", "status", "tags",
    "featured", "capacity_max", "requires_approval", "pricing_type",
})


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    sport: str = Field(..., min_length=1, max_length=100)
    event_type: Optional[str] = Field(None, max_length=50)
    skill_level: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    start_date: datetime
    end_date: Optional[datetime] = None
    status: EventStatus = "published"
    tags: list[str] = Field(default_factory=list)
    featured: bool = False
    capacity_max: int = Field(..., gt=0, le=100000)
    requires_approval: bool = False
    pricing_type: PricingType = "free"
    pricing_amount: Optional[float] = Field(None, ge=0)
    pricing_currency: Optional[str] = Field(None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_dates_and_pricing(self) -> "EventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.pricing_type == "paid" and self.pricing_amount is None:
            raise ValueError("pricing_amount is required for paid events")
        return self


class EventUpdate(BaseModel):
    """Partial update. Roster fields (participants, waitlist, requests) are not writable."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    sport: Optional[str] = Field(None, min_length=1, max_length=100)
    event_type: Optional[str] = Field(None, max_length=50)
    skill_level: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[EventStatus] = None
    tags: Optional[list[str]] = None
    featured: Optional[bool] = None
    capacity_max: Optional[int] = Field(None, gt=0, le=100000)
    requires_approval: Optional[bool] = None
    pricing_type: Optional[PricingType] = None
    pricing_amount: Optional[float] = Field(None, ge=0)
    pricing_currency: Optional[str] = Field(None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def reject_cleared_required_fields(self) -> "EventUpdate":
        cleared = sorted(
            name for name in self.model_fields_set
            if name in NON_NULLABLE_UPDATE_FIELDS and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"cannot be null: {', '.join(cleared)}")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class JoinRequestResponse(BaseModel):
    id: int
    user_id: int
    status: str
    transaction_code: str
    requested_at: datetime
    processed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    sport: str
    event_type: Optional[str]
    skill_level: Optional[str]
    location: Optional[str]
    city: Optional[str]
    start_date: datetime
    end_date: Optional[datetime]
    status: str
    tags: list[str]
    featured: bool
    organizer_id: int
    capacity_current: int
    capacity_max: int
    participants: list[int]
    waitlist: list[int]
    requires_approval: bool
    pricing_type: str
    pricing_amount: Optional[float]
    pricing_currency: Optional[str]
    join_requests: list[JoinRequestResponse] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class EventSummary(BaseModel):
    id: int
    title: str
    sport: str
    start_date: datetime
    location: Optional[str]
    organizer_id: int
    pricing_type: str
    pricing_amount: Optional[float]
    pricing_currency: Optional[str]

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    pages: int
    cached: bool = False
