"""
Event catalogue endpoints with Redis caching on list operations.
"""

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from huddle.db.session import get_db
from huddle.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse
from huddle.services import event_service
from huddle.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache
from huddle.core.security import get_current_user_id
from huddle.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. The caller becomes its organizer."""
    event = await event_service.create_event(db, event_data, user_id)
    await invalidate_event_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    sport: Optional[str] = None,
    city: Optional[str] = None,
    event_type: Optional[str] = None,
    skill_level: Optional[str] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
    event_status: str = Query("published", alias="status"),
    featured: Optional[bool] = None,
    sort_by: Literal["date", "participants", "created"] = "date",
    order: Literal["asc", "desc"] = "asc",
    db: AsyncSession = Depends(get_db),
):
    """
    List events with filters and pagination.
    Results are cached in Redis until the next catalogue or roster change.
    """
    params = {
        "page": page,
        "page_size": page_size,
        "search": search,
        "sport": sport,
        "city": city,
        "event_type": event_type,
        "skill_level": skill_level,
        "start_after": start_after,
        "start_before": start_before,
        "event_status": event_status,
        "featured": featured,
        "sort_by": sort_by,
        "order": order,
    }

    cached = await get_cached_events(params)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await event_service.list_events(db, **params)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": (total + page_size - 1) // page_size,
        "cached": False,
    }
    await set_cached_events(params, response_data)

    return EventListResponse(**response_data)


@router.get("/my/created", response_model=list[EventResponse])
async def my_events_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Events organized by the authenticated user, newest first."""
    return await event_service.list_my_events(db, user_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (clients need live roster counts)."""
    return await event_service.get_event(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update an event's catalogue fields. Organizer only."""
    event = await event_service.update_event(db, event_id, event_data, user_id)
    await invalidate_event_cache()
    return event


@router.delete("/{event_id}")
async def delete_event_endpoint(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event along with its join requests. Organizer only."""
    await event_service.delete_event(db, event_id, user_id)
    await invalidate_event_cache()
    return {"message": "Event deleted successfully"}
