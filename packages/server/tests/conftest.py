"""
Shared fixtures: a throwaway SQLite database per test, an HTTP client bound to
it, and helpers to mint credentials and seed rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.auth import Identity, create_access_token
from app.core.database import get_session
from app.main import app as fastapi_app
from app.models.event import Event, EventUser
from app.models.event_code import EventCode, EventCodeEvent
from app.models.user import User


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """Session for seeding and inspecting rows. Commit before hitting the API."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def session_calls():
    """Number of request-scoped sessions opened by the API during a test."""
    return []


@pytest.fixture
async def client(session_factory, session_calls):
    async def override_get_session():
        session_calls.append(1)
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = override_get_session
    fastapi_app.state.login_limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def bearer(user_id: uuid.UUID | None = None, role: str = "USER", name: str = "Test") -> dict:
    identity = Identity(user_id=user_id or uuid.uuid4(), name=name, role=role)
    return {"Authorization": f"Bearer {create_access_token(identity)}"}


@pytest.fixture
def admin_headers() -> dict:
    return bearer(role="ADMIN", name="Admin")


@pytest.fixture
def user_headers() -> dict:
    return bearer(role="USER", name="Marie")


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

async def make_user(session: AsyncSession, name: str = "Marie", **kwargs) -> User:
    user = User(name=name, **kwargs)
    session.add(user)
    await session.flush()
    return user


async def make_event(
    session: AsyncSession,
    name: str = "Réveillon",
    *,
    date: datetime | None = None,
    status: str = "OPEN",
    **kwargs,
) -> Event:
    event = Event(
        name=name,
        date=date or datetime.now(timezone.utc) + timedelta(days=10),
        status=status,
        **kwargs,
    )
    session.add(event)
    await session.flush()
    return event


async def make_code(
    session: AsyncSession,
    code: str,
    events: list[Event],
    **kwargs,
) -> EventCode:
    record = EventCode(code=code.upper(), **kwargs)
    session.add(record)
    await session.flush()
    for event in events:
        session.add(EventCodeEvent(code_id=record.id, event_id=event.id))
    await session.flush()
    return record


async def join(session: AsyncSession, user: User, event: Event) -> None:
    session.add(EventUser(user_id=user.id, event_id=event.id))
    await session.flush()
