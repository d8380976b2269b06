"""
Event service handling catalogue CRUD operations.

Roster fields (participants, waitlist, capacity_current, join requests) are
owned by join_service and never written here.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from huddle.models.event import Event
from huddle.schemas.event import EventCreate, EventUpdate
from huddle.core.logging import get_logger

logger = get_logger(__name__)

SORT_COLUMNS = {
    "date": Event.start_date,
    "participants": Event.capacity_current,
    "created": Event.created_at,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_event(db: AsyncSession, event_data: EventCreate, organizer_id: int) -> Event:
    """Create a new event with an empty roster."""
    if _as_utc(event_data.start_date) <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event start date must be in the future",
        )

    event = Event(
        **event_data.model_dump(),
        organizer_id=organizer_id,
        capacity_current=0,
        participants=[],
        waitlist=[],
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_created",
        event_id=event.id,
        title=event.title,
        capacity_max=event.capacity_max,
        requires_approval=event.requires_approval,
    )
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


def _get_owned(event: Event, user_id: int) -> Event:
    if event.organizer_id != user_id:
        logger.warning("event_access_denied", event_id=event.id, user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    search: Optional[str] = None,
    sport: Optional[str] = None,
    city: Optional[str] = None,
    event_type: Optional[str] = None,
    skill_level: Optional[str] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
    event_status: str = "published",
    featured: Optional[bool] = None,
    sort_by: str = "date",
    order: str = "asc",
) -> tuple[list[Event], int]:
    """
    List events with filters and pagination.
    Uses the ix_events_status_sport_start index for the common sport listing.
    """
    query = select(Event).where(Event.status == event_status)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    if sport:
        query = query.where(Event.sport == sport)
    if city:
        query = query.where(Event.city.ilike(f"%{city}%"))
    if event_type:
        query = query.where(Event.event_type == event_type)
    if skill_level:
        query = query.where(Event.skill_level == skill_level)
    if featured is not None:
        query = query.where(Event.featured == featured)
    if start_after:
        query = query.where(Event.start_date >= start_after)
    if start_before:
        query = query.where(Event.start_date <= start_before)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    column = SORT_COLUMNS.get(sort_by, Event.created_at)
    ordering = column.asc() if order == "asc" else column.desc()

    events_query = (
        query
        .order_by(ordering, Event.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def list_my_events(db: AsyncSession, organizer_id: int) -> list[Event]:
    """Events created by the organizer, newest first."""
    result = await db.execute(
        select(Event)
        .where(Event.organizer_id == organizer_id)
        .order_by(Event.created_at.desc(), Event.id.desc())
    )
    return list(result.scalars().all())


def _check_merged_fields(event: Event, changes: dict) -> None:
    """Create-time rules, applied to the event as it would look after the update."""
    pricing_type = changes.get("pricing_type", event.pricing_type)
    pricing_amount = changes.get("pricing_amount", event.pricing_amount)
    if pricing_type == "paid" and pricing_amount is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="pricing_amount is required for paid events",
        )

    start_date = changes.get("start_date", event.start_date)
    end_date = changes.get("end_date", event.end_date)
    if end_date is not None and _as_utc(end_date) < _as_utc(start_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )


async def update_event(
    db: AsyncSession,
    event_id: int,
    event_data: EventUpdate,
    user_id: int,
) -> Event:
    """
    Update catalogue fields. Organizer only.
    Shares the roster's version counter so a capacity change can never
    interleave with a concurrent join.
    """
    event = _get_owned(await get_event(db, event_id), user_id)
    changes = event_data.model_dump(exclude_unset=True)

    new_max = changes.get("capacity_max")
    if new_max is not None and new_max < len(event.participants):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Capacity cannot be lower than the current participant count ({len(event.participants)})",
        )

    _check_merged_fields(event, changes)

    if changes:
        result = await db.execute(
            update(Event)
            .where(Event.id == event_id, Event.version == event.version)
            .values(**changes, version=Event.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Event was modified concurrently. Please try again.",
            )
        await db.flush()

    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return await get_event(db, event_id)


async def delete_event(db: AsyncSession, event_id: int, user_id: int) -> None:
    """Delete an event and its join requests. Organizer only."""
    event = _get_owned(await get_event(db, event_id), user_id)
    await db.delete(event)
    await db.flush()
    logger.info("event_deleted", event_id=event_id, organizer_id=user_id)
