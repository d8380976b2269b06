"""
Join workflow endpoints: join, leave, waitlist, approve/reject requests,
and the requester/organizer request listings.

Domain errors raised by join_service are rendered by the JoinWorkflowError
handler registered in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from huddle.db.session import get_db
from huddle.schemas.event import EventResponse, EventSummary, JoinRequestResponse
from huddle.schemas.join import (
    JoinEventRequest,
    JoinEventResponse,
    LeaveEventResponse,
    MyJoinRequestItem,
    OrganizerPendingRequestItem,
    RequestDecisionResponse,
    WaitlistResponse,
)
from huddle.services import join_service
from huddle.services.cache_service import invalidate_event_cache
from huddle.services.interfaces.notifier import NotificationEmitter
from huddle.services.notification_service import get_notifier
from huddle.core.security import get_current_user_id

router = APIRouter(prefix="/events", tags=["Join Requests"])


@router.get("/my-join-requests", response_model=list[MyJoinRequestItem])
async def my_join_requests(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Events the authenticated user asked to join, with the latest request on each."""
    rows = await join_service.get_my_join_requests(db, user_id)
    return [
        MyJoinRequestItem(
            event=EventSummary.model_validate(event),
            request=JoinRequestResponse.model_validate(request),
        )
        for event, request in rows
    ]


@router.get("/my-events-requests", response_model=list[OrganizerPendingRequestItem])
async def my_events_requests(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Pending requests across every event the authenticated user organizes."""
    rows = await join_service.get_pending_requests_for_organizer(db, user_id)
    return [
        OrganizerPendingRequestItem(
            request_id=request.id,
            event=EventSummary.model_validate(event),
            user_id=request.user_id,
            transaction_code=request.transaction_code,
            requested_at=request.requested_at,
        )
        for event, request in rows
    ]


@router.post("/{event_id}/join", response_model=JoinEventResponse)
async def join_event(
    event_id: int,
    payload: Optional[JoinEventRequest] = Body(None),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    """
    Join an event.

    Open events admit immediately. Events requiring approval record a
    pending request for the organizer instead. Paid events need a
    transaction code either way.
    """
    transaction_code = payload.transaction_code if payload else None
    result = await join_service.attempt_join(db, notifier, event_id, user_id, transaction_code)
    await invalidate_event_cache()

    if result.requires_approval:
        message = "Join request submitted! Awaiting organizer approval."
    else:
        message = "Successfully joined event!"
    return JoinEventResponse(
        message=message,
        requires_approval=result.requires_approval,
        event=EventResponse.model_validate(result.event),
    )


@router.post("/{event_id}/leave", response_model=LeaveEventResponse)
async def leave_event(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    """Leave an event. The first user on the waitlist takes the freed spot."""
    event, promoted = await join_service.leave_event(db, notifier, event_id, user_id)
    await invalidate_event_cache()
    return LeaveEventResponse(
        message="You have left the event",
        promoted_user_id=promoted,
        event=EventResponse.model_validate(event),
    )


@router.post("/{event_id}/waitlist", response_model=WaitlistResponse)
async def join_waitlist(
    event_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Queue for a full event that admits without approval."""
    event, position = await join_service.join_waitlist(db, event_id, user_id)
    await invalidate_event_cache()
    return WaitlistResponse(
        message="Added to the waitlist",
        position=position,
        event=EventResponse.model_validate(event),
    )


@router.post("/{event_id}/approve-request/{request_id}", response_model=RequestDecisionResponse)
async def approve_request(
    event_id: int,
    request_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    """Approve a pending join request. Organizer only."""
    event = await join_service.approve_request(db, notifier, event_id, request_id, user_id)
    await invalidate_event_cache()
    return RequestDecisionResponse(
        message="Join request approved",
        event=EventResponse.model_validate(event),
    )


@router.post("/{event_id}/reject-request/{request_id}", response_model=RequestDecisionResponse)
async def reject_request(
    event_id: int,
    request_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    """Reject a pending join request. Organizer only."""
    event = await join_service.reject_request(db, notifier, event_id, request_id, user_id)
    await invalidate_event_cache()
    return RequestDecisionResponse(
        message="Join request rejected",
        event=EventResponse.model_validate(event),
    )
