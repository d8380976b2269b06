"""Event roster: the in-memory aggregate the join workflow operates on.

A roster is a snapshot of one event's capacity ledger, participant list,
waitlist queue and join requests. Every transition either mutates the
snapshot or raises a ``JoinWorkflowError`` before touching anything, so a
failed transition never leaves a half-applied roster behind.

Rosters do no I/O. Loading and persisting them is the service layer's job.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from huddle.domain.errors import (
    AlreadyJoinedError,
    AlreadyProcessedError,
    CapacityExceededError,
    DuplicateRequestError,
    ForbiddenError,
    NotAParticipantError,
    NotFoundError,
    PaymentRequiredError,
    WaitlistUnavailableError,
)

FREE_TRANSACTION_CODE = "FREE"


class JoinOutcome(str, Enum):
    JOINED = "joined"
    PENDING_APPROVAL = "pending_approval"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Pricing:
    type: str = "free"
    amount: Optional[float] = None
    currency: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.type == "paid"


@dataclass
class JoinRequestEntry:
    """A join request owned by the roster. ``id`` is None until persisted."""

    user_id: int
    transaction_code: str
    requested_at: datetime
    status: RequestStatus = RequestStatus.PENDING
    processed_at: Optional[datetime] = None
    id: Optional[int] = None

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING


@dataclass
class EventRoster:
    event_id: int
    organizer_id: int
    title: str
    capacity_max: int
    capacity_current: int = 0
    participants: list[int] = field(default_factory=list)
    waitlist: list[int] = field(default_factory=list)
    join_requests: list[JoinRequestEntry] = field(default_factory=list)
    requires_approval: bool = False
    pricing: Pricing = field(default_factory=Pricing)
    version: int = 1

    # Capacity ledger

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.capacity_max

    def _sync_capacity(self) -> None:
        self.capacity_current = len(self.participants)

    def _admit(self, user_id: int) -> None:
        if user_id not in self.participants:
            self.participants.append(user_id)
        # Participants and waitlist stay disjoint
        if user_id in self.waitlist:
            self.waitlist.remove(user_id)
        self._sync_capacity()

    # Join-request store

    def pending_request_for(self, user_id: int) -> Optional[JoinRequestEntry]:
        for entry in self.join_requests:
            if entry.user_id == user_id and entry.is_pending:
                return entry
        return None

    def get_request(self, request_id: int) -> JoinRequestEntry:
        for entry in self.join_requests:
            if entry.id == request_id:
                return entry
        raise NotFoundError.join_request(request_id)

    def _decidable_request(self, request_id: int, approver_id: int, action: str) -> JoinRequestEntry:
        if approver_id != self.organizer_id:
            raise ForbiddenError(action)
        entry = self.get_request(request_id)
        if not entry.is_pending:
            raise AlreadyProcessedError(entry.status.value)
        return entry

    # Transitions

    def join(
        self,
        user_id: int,
        now: datetime,
        transaction_code: Optional[str] = None,
    ) -> JoinOutcome:
        """Admit the user immediately or file a pending join request.

        Capacity is checked before the approval branch, so a full event
        never accepts new requests either.
        """
        if user_id in self.participants:
            raise AlreadyJoinedError()

        if self.is_full:
            raise CapacityExceededError(self.capacity_max)

        if self.pricing.is_paid and not transaction_code:
            raise PaymentRequiredError(self.pricing.amount, self.pricing.currency)

        if self.requires_approval:
            if self.pending_request_for(user_id) is not None:
                raise DuplicateRequestError()
            self.join_requests.append(
                JoinRequestEntry(
                    user_id=user_id,
                    transaction_code=transaction_code or FREE_TRANSACTION_CODE,
                    requested_at=now,
                )
            )
            return JoinOutcome.PENDING_APPROVAL

        self._admit(user_id)
        return JoinOutcome.JOINED

    def approve(self, request_id: int, approver_id: int, now: datetime) -> JoinRequestEntry:
        entry = self._decidable_request(request_id, approver_id, "approve")
        # Approval never overrides capacity
        if self.is_full:
            raise CapacityExceededError(self.capacity_max)

        entry.status = RequestStatus.APPROVED
        entry.processed_at = now
        self._admit(entry.user_id)
        return entry

    def reject(self, request_id: int, approver_id: int, now: datetime) -> JoinRequestEntry:
        entry = self._decidable_request(request_id, approver_id, "reject")
        entry.status = RequestStatus.REJECTED
        entry.processed_at = now
        return entry

    def leave(self, user_id: int) -> Optional[int]:
        """Remove a participant and promote the waitlist head, if any.

        Promotion does not go through the approval gate, even on events with
        ``requires_approval`` set. Returns the promoted user id.
        """
        if user_id not in self.participants:
            raise NotAParticipantError()

        self.participants.remove(user_id)
        self.capacity_current -= 1

        promoted = None
        while self.waitlist:
            head = self.waitlist.pop(0)
            if head in self.participants:
                continue
            promoted = head
            self.participants.append(promoted)
            self.capacity_current += 1
            break
        return promoted

    def enqueue_waitlist(self, user_id: int) -> int:
        """Append the user to the waitlist of a full, open-admission event.

        Returns the user's 1-based position in the queue.
        """
        if user_id in self.participants:
            raise AlreadyJoinedError()
        if self.requires_approval:
            raise WaitlistUnavailableError("Events requiring approval do not keep a waitlist")
        if not self.is_full:
            raise WaitlistUnavailableError("Event still has open spots, join it directly")
        if user_id in self.waitlist:
            raise WaitlistUnavailableError("You are already on the waitlist")

        self.waitlist.append(user_id)
        return len(self.waitlist)
