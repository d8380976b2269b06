"""Initial schema: users, events with embedded roster, join_requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("sport", sa.String(100), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=True),
        sa.Column("skill_level", sa.String(50), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'published'")),
        sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("organizer_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("capacity_max", sa.Integer(), nullable=False),
        sa.Column("capacity_current", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("participants", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("waitlist", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("requires_approval", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("pricing_type", sa.String(10), nullable=False, server_default=sa.text("'free'")),
        sa.Column("pricing_amount", sa.Float(), nullable=True),
        sa.Column("pricing_currency", sa.String(3), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("capacity_current >= 0", name="check_capacity_current_non_negative"),
        sa.CheckConstraint("capacity_max > 0", name="check_capacity_max_positive"),
        sa.CheckConstraint("capacity_current <= capacity_max", name="check_capacity_current_lte_max"),
        sa.CheckConstraint("pricing_type IN ('free', 'paid')", name="check_pricing_type"),
        sa.CheckConstraint(
            "status IN ('draft', 'published', 'cancelled', 'completed')",
            name="check_event_status",
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    # Upcoming-event listings are range scans on start_date
    op.create_index("ix_events_start_date", "events", ["start_date"])
    # "Published football events, soonest first"
    op.create_index("ix_events_status_sport_start", "events", ["status", "sport", "start_date"])

    op.create_table(
        "join_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("transaction_code", sa.String(255), nullable=False, server_default=sa.text("'FREE'")),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="check_join_request_status",
        ),
    )
    op.create_index("ix_join_requests_id", "join_requests", ["id"])
    op.create_index("ix_join_requests_event_id", "join_requests", ["event_id"])
    op.create_index("ix_join_requests_user_id", "join_requests", ["user_id"])
    op.create_index("ix_join_requests_event_status", "join_requests", ["event_id", "status"])


def downgrade() -> None:
    op.drop_table("join_requests")
    op.drop_table("events")
    op.drop_table("users")
