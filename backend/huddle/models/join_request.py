"""
Join request model: an admission record owned by an Event.

Key design decisions:
- Rows are never deleted individually, only transitioned; they go away with
  their event (ON DELETE CASCADE)
- "At most one pending request per (event, user)" is enforced by the join
  workflow, not by a unique constraint, since rejected and approved rows
  for the same pair may coexist
- Status is monotonic: pending -> approved | rejected
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from huddle.db.base import Base, TimestampMixin

REQUEST_STATUSES = ("pending", "approved", "rejected")


class JoinRequest(Base, TimestampMixin):
    __tablename__ = "join_requests"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    transaction_code = Column(String(255), nullable=False, default="FREE")
    requested_at = Column(DateTime(timezone=True), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    event = relationship("Event", back_populates="join_requests")
    user = relationship("User", back_populates="join_requests")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="check_join_request_status",
        ),
        # Pending-request lookups for organizer dashboards
        Index("ix_join_requests_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<JoinRequest(id={self.id}, event={self.event_id}, "
            f"user={self.user_id}, status={self.status})>"
        )
