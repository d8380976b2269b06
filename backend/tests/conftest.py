"""
Pytest fixtures for test database, client, authentication and notifications.

Each test gets a fresh in-memory SQLite database (aiosqlite) that is
created before and dropped after the test. Redis is disabled, and the
notification emitter is replaced by a recorder so tests can assert on
what would have been pushed to clients.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from huddle.main import app
from huddle.db.base import Base
from huddle.db.session import get_db
from huddle.core.security import create_access_token, hash_password
from huddle.models.user import User
from huddle.models.event import Event
from huddle.services.interfaces.notifier import NotificationEmitter
from huddle.services.notification_service import get_notifier

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# Hashing is the slow part of user fixtures; every test user shares one password
TEST_PASSWORD = "testpassword123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class RecordingNotifier(NotificationEmitter):
    """Captures emitted notifications instead of broadcasting them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        self.sent.append((event_name, payload))

    def names(self) -> list[str]:
        return [name for name, _ in self.sent]


class FailingNotifier(NotificationEmitter):
    async def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        raise ConnectionError("socket layer down")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and notifier dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, username: str) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        hashed_password=TEST_PASSWORD_HASH,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """The organizer of every event created through make_event."""
    return await _create_user(db_session, "testuser")


@pytest_asyncio.fixture
async def member(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "member")


@pytest_asyncio.fixture
async def other_member(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "othermember")


@pytest_asyncio.fixture
async def user_factory(db_session: AsyncSession):
    async def create(username: str) -> User:
        return await _create_user(db_session, username)

    return create


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers for the organizer."""
    return headers_for(test_user)


@pytest_asyncio.fixture
async def member_headers(member: User) -> dict:
    return headers_for(member)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, test_user: User):
    """Factory for events organized by test_user; keyword overrides any column."""

    async def create(**overrides) -> Event:
        participants = overrides.pop("participants", [])
        fields = {
            "title": "Sunday Five-a-side",
            "description": "Casual football on the astro pitch",
            "sport": "football",
            "location": "Riverside Astro",
            "city": "Leeds",
            "start_date": datetime.now(timezone.utc) + timedelta(days=7),
            "capacity_max": 10,
            "requires_approval": False,
            "pricing_type": "free",
            "waitlist": [],
            "organizer_id": test_user.id,
        }
        fields.update(overrides)
        event = Event(
            participants=list(participants),
            capacity_current=len(participants),
            **fields,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return create


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An open-admission free event with 10 spots."""
    return await make_event()


@pytest_asyncio.fixture
async def approval_event(make_event) -> Event:
    """A free event where the organizer approves every join."""
    return await make_event(title="Club Trials", requires_approval=True, capacity_max=5)
