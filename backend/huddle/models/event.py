"""
Event model: catalogue fields plus the embedded roster.

Key design decisions:
- `participants` and `waitlist` are ordered JSON arrays of user ids living on
  the event row, so one row update changes the whole roster atomically
- `capacity_current` is denormalized from `participants` for cheap listing
  sorts; CHECK constraints keep it within [0, capacity_max]
- `version` column enables optimistic locking (compare-and-swap) for
  concurrent join/leave/approve writes
- Index on `start_date` for upcoming-event listings
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from huddle.db.base import Base, TimestampMixin

EVENT_STATUSES = ("draft", "published", "cancelled", "completed")
PRICING_TYPES = ("free", "paid")


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    sport = Column(String(100), nullable=False)
    event_type = Column(String(50), nullable=True)  # match, training, tournament, meetup
    skill_level = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    city = Column(String(120), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="published")
    tags = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Capacity ledger
    capacity_max = Column(Integer, nullable=False)
    capacity_current = Column(Integer, nullable=False, default=0)

    # Roster
    participants = Column(JSON, nullable=False, default=list)
    waitlist = Column(JSON, nullable=False, default=list)
    requires_approval = Column(Boolean, nullable=False, default=False)

    # Pricing
    pricing_type = Column(String(10), nullable=False, default="free")
    pricing_amount = Column(Float, nullable=True)
    pricing_currency = Column(String(3), nullable=True)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    organizer = relationship("User", back_populates="events")
    join_requests = relationship(
        "JoinRequest",
        back_populates="event",
        lazy="selectin",
        order_by="JoinRequest.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("capacity_current >= 0", name="check_capacity_current_non_negative"),
        CheckConstraint("capacity_max > 0", name="check_capacity_max_positive"),
        CheckConstraint("capacity_current <= capacity_max", name="check_capacity_current_lte_max"),
        CheckConstraint("pricing_type IN ('free', 'paid')", name="check_pricing_type"),
        CheckConstraint(
            "status IN ('draft', 'published', 'cancelled', 'completed')",
            name="check_event_status",
        ),
        Index("ix_events_start_date", "start_date"),
        # Common listing: published events of a sport, soonest first
        Index("ix_events_status_sport_start", "status", "sport", "start_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title={self.title}, "
            f"capacity={self.capacity_current}/{self.capacity_max}, version={self.version})>"
        )
