"""
Event join workflow: join, approve, reject, leave and waitlist enrollment.

CONCURRENCY STRATEGY: Compare-and-swap on the roster version
=============================================================

Problem:
  Two users race for the last spot. Both read participants=[..N-1..],
  both pass the capacity check in memory, both write. Result: N+1
  participants on an event with capacity N.

Solution:
  Every transition is evaluated on an EventRoster snapshot and written back
  with a single guarded UPDATE:

    UPDATE events
       SET participants = :p, waitlist = :w, capacity_current = :c,
           version = version + 1
     WHERE id = :event_id AND version = :read_version

  If rows_affected == 0 another writer committed first. We roll back,
  reload the roster and re-evaluate the transition against fresh state
  (which may now fail with CapacityExceeded), up to JOIN_MAX_RETRY_ATTEMPTS.

  Join-request inserts/updates happen in the same transaction as the
  guarded UPDATE, so the roster and its requests always commit together.
  CHECK constraints on capacity are the final safety net.

Notifications are emitted only after commit, and their failures are
swallowed (see notification_service).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from huddle.core.config import get_settings
from huddle.core.logging import get_logger
from huddle.core.metrics import (
    join_latency,
    record_join_outcome,
    record_request_decision,
    roster_write_retries,
    waitlist_promotions,
)
from huddle.domain.errors import ConcurrentModificationError, JoinWorkflowError, NotFoundError
from huddle.domain.roster import EventRoster, JoinOutcome, JoinRequestEntry, Pricing, RequestStatus
from huddle.models.event import Event
from huddle.models.join_request import JoinRequest
from huddle.services import notification_service
from huddle.services.interfaces.notifier import NotificationEmitter

logger = get_logger(__name__)
settings = get_settings()

T = TypeVar("T")


@dataclass
class JoinResult:
    outcome: JoinOutcome
    event: Event

    @property
    def requires_approval(self) -> bool:
        return self.outcome is JoinOutcome.PENDING_APPROVAL


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _load_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError.event(event_id)
    return event


def build_roster(event: Event) -> EventRoster:
    """Snapshot an Event row and its join requests into a roster."""
    return EventRoster(
        event_id=event.id,
        organizer_id=event.organizer_id,
        title=event.title,
        capacity_max=event.capacity_max,
        capacity_current=event.capacity_current,
        participants=list(event.participants or []),
        waitlist=list(event.waitlist or []),
        join_requests=[
            JoinRequestEntry(
                id=row.id,
                user_id=row.user_id,
                status=RequestStatus(row.status),
                transaction_code=row.transaction_code,
                requested_at=row.requested_at,
                processed_at=row.processed_at,
            )
            for row in event.join_requests
        ],
        requires_approval=event.requires_approval,
        pricing=Pricing(
            type=event.pricing_type,
            amount=event.pricing_amount,
            currency=event.pricing_currency,
        ),
        version=event.version,
    )


async def _write_roster(db: AsyncSession, event: Event, roster: EventRoster) -> bool:
    """
    Persist a roster with a version-guarded UPDATE.
    Returns False when the stored version moved since the roster was read.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == roster.event_id, Event.version == roster.version)
        .values(
            participants=list(roster.participants),
            waitlist=list(roster.waitlist),
            capacity_current=roster.capacity_current,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return False

    stored = {row.id: row for row in event.join_requests}
    for entry in roster.join_requests:
        if entry.id is None:
            row = JoinRequest(
                event_id=roster.event_id,
                user_id=entry.user_id,
                status=entry.status.value,
                transaction_code=entry.transaction_code,
                requested_at=entry.requested_at,
            )
            db.add(row)
            await db.flush()
            entry.id = row.id
            continue

        row = stored[entry.id]
        if row.status != entry.status.value:
            row.status = entry.status.value
            row.processed_at = entry.processed_at

    await db.flush()
    return True


async def _apply(
    db: AsyncSession,
    event_id: int,
    operation: str,
    transition: Callable[[EventRoster], T],
) -> tuple[Event, EventRoster, T]:
    """
    Load, transition, compare-and-swap, commit. Retries on version conflicts.
    Domain errors raised by the transition abort without any write.
    """
    for attempt in range(1, settings.JOIN_MAX_RETRY_ATTEMPTS + 1):
        event = await _load_event(db, event_id)
        roster = build_roster(event)
        value = transition(roster)

        if await _write_roster(db, event, roster):
            await db.commit()
            return await _load_event(db, event_id), roster, value

        roster_write_retries.inc()
        logger.info(
            "roster_version_conflict",
            event_id=event_id,
            operation=operation,
            attempt=attempt,
            read_version=roster.version,
        )
        await db.rollback()

    logger.warning("roster_retries_exhausted", event_id=event_id, operation=operation)
    raise ConcurrentModificationError()


async def attempt_join(
    db: AsyncSession,
    notifier: NotificationEmitter,
    event_id: int,
    user_id: int,
    transaction_code: Optional[str] = None,
) -> JoinResult:
    """
    Join an event, or file a join request when the organizer must approve.

    Raises NotFound, AlreadyJoined, CapacityExceeded, PaymentRequired or
    DuplicateRequest, in that order of precedence.
    """
    now = _now()
    try:
        with join_latency.labels(operation="join").time():
            event, _, outcome = await _apply(
                db,
                event_id,
                "join",
                lambda r: r.join(user_id, now, transaction_code),
            )
    except JoinWorkflowError as e:
        record_join_outcome(e.code.value)
        logger.info("join_rejected", event_id=event_id, user_id=user_id, code=e.code.value)
        raise

    record_join_outcome(outcome.value)

    if outcome is JoinOutcome.PENDING_APPROVAL:
        logger.info("join_request_created", event_id=event_id, user_id=user_id)
        await notification_service.notify(
            notifier,
            notification_service.JOIN_REQUEST_CREATED,
            {
                "eventId": event.id,
                "eventTitle": event.title,
                "organizerId": event.organizer_id,
                "requesterId": user_id,
            },
        )
    else:
        logger.info(
            "join_accepted",
            event_id=event_id,
            user_id=user_id,
            capacity_current=event.capacity_current,
            capacity_max=event.capacity_max,
        )
        await notification_service.notify(
            notifier,
            notification_service.PARTICIPANT_JOINED,
            {
                "eventId": event.id,
                "eventTitle": event.title,
                "organizerId": event.organizer_id,
                "participantId": user_id,
            },
        )

    return JoinResult(outcome=outcome, event=event)


async def _decide_request(
    db: AsyncSession,
    notifier: NotificationEmitter,
    event_id: int,
    request_id: int,
    approver_id: int,
    decision: RequestStatus,
) -> Event:
    now = _now()
    if decision is RequestStatus.APPROVED:
        operation, notification = "approve", notification_service.JOIN_REQUEST_APPROVED
    else:
        operation, notification = "reject", notification_service.JOIN_REQUEST_REJECTED

    def transition(roster: EventRoster) -> JoinRequestEntry:
        if decision is RequestStatus.APPROVED:
            return roster.approve(request_id, approver_id, now)
        return roster.reject(request_id, approver_id, now)

    try:
        with join_latency.labels(operation=operation).time():
            event, _, entry = await _apply(db, event_id, operation, transition)
    except JoinWorkflowError as e:
        logger.info(
            f"{operation}_request_failed",
            event_id=event_id,
            request_id=request_id,
            approver_id=approver_id,
            code=e.code.value,
        )
        raise

    record_request_decision(decision.value)
    logger.info(
        f"join_request_{decision.value}",
        event_id=event_id,
        request_id=request_id,
        user_id=entry.user_id,
    )
    await notification_service.notify(
        notifier,
        notification,
        {"eventId": event.id, "eventTitle": event.title, "userId": entry.user_id},
    )
    return event


async def approve_request(
    db: AsyncSession,
    notifier: NotificationEmitter,
    event_id: int,
    request_id: int,
    approver_id: int,
) -> Event:
    """Approve a pending request and admit its user. Capacity still applies."""
    return await _decide_request(db, notifier, event_id, request_id, approver_id, RequestStatus.APPROVED)


async def reject_request(
    db: AsyncSession,
    notifier: NotificationEmitter,
    event_id: int,
    request_id: int,
    approver_id: int,
) -> Event:
    """Reject a pending request. The roster itself is untouched."""
    return await _decide_request(db, notifier, event_id, request_id, approver_id, RequestStatus.REJECTED)


async def leave_event(
    db: AsyncSession,
    notifier: NotificationEmitter,
    event_id: int,
    user_id: int,
) -> tuple[Event, Optional[int]]:
    """
    Leave an event. The head of the waitlist, if any, takes the freed spot
    without going through organizer approval.
    """
    try:
        with join_latency.labels(operation="leave").time():
            event, _, promoted = await _apply(db, event_id, "leave", lambda r: r.leave(user_id))
    except JoinWorkflowError as e:
        logger.info("leave_failed", event_id=event_id, user_id=user_id, code=e.code.value)
        raise

    if promoted is not None:
        waitlist_promotions.inc()
    logger.info("participant_left", event_id=event_id, user_id=user_id, promoted_user_id=promoted)

    await notification_service.notify(
        notifier,
        notification_service.PARTICIPANT_LEFT,
        {
            "eventId": event.id,
            "eventTitle": event.title,
            "organizerId": event.organizer_id,
            "participantId": user_id,
            "promotedUserId": promoted,
        },
    )
    return event, promoted


async def join_waitlist(db: AsyncSession, event_id: int, user_id: int) -> tuple[Event, int]:
    """Queue for a spot on a full, open-admission event. Returns the 1-based position."""
    try:
        event, _, position = await _apply(
            db, event_id, "waitlist", lambda r: r.enqueue_waitlist(user_id)
        )
    except JoinWorkflowError as e:
        logger.info("waitlist_rejected", event_id=event_id, user_id=user_id, code=e.code.value)
        raise

    logger.info("waitlisted", event_id=event_id, user_id=user_id, position=position)
    return event, position


async def get_my_join_requests(
    db: AsyncSession, user_id: int
) -> list[tuple[Event, JoinRequest]]:
    """Every event the user has requested to join, with their latest request on it."""
    result = await db.execute(
        select(JoinRequest)
        .where(JoinRequest.user_id == user_id)
        .order_by(JoinRequest.requested_at.desc(), JoinRequest.id.desc())
    )
    latest: dict[int, JoinRequest] = {}
    for request in result.scalars().all():
        latest.setdefault(request.event_id, request)

    if not latest:
        return []

    events = await db.execute(select(Event).where(Event.id.in_(list(latest))))
    by_id = {event.id: event for event in events.scalars().all()}
    return [(by_id[event_id], request) for event_id, request in latest.items()]


async def get_pending_requests_for_organizer(
    db: AsyncSession, organizer_id: int
) -> list[tuple[Event, JoinRequest]]:
    """Pending requests across all events the user organizes, oldest first."""
    result = await db.execute(
        select(JoinRequest, Event)
        .join(Event, JoinRequest.event_id == Event.id)
        .where(
            Event.organizer_id == organizer_id,
            JoinRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(JoinRequest.requested_at.asc(), JoinRequest.id.asc())
    )
    return [(event, request) for request, event in result.all()]
