"""
Pytest configuration for the ClinicLink backend.

Settings are read at import time, so the environment is prepared before any
cliniclink module is imported. Each test gets its own in-memory SQLite
database on the test's event loop.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENV"] = "test"
os.environ["CLINIC_TIMEZONE"] = ""

from datetime import datetime

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from cliniclink.api.deps import get_clock, get_notification_channel
from cliniclink.core.db import get_session
from cliniclink.core.security import create_access_token
from cliniclink.main import app
from cliniclink.models import User

# Wednesday
NOW = datetime(2025, 3, 5, 10, 0)


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingChannel:
    """Stands in for the notification channel; remembers what it was handed."""

    def __init__(self) -> None:
        self.scheduled = []

    def schedule(self, recipient, event) -> str:
        self.scheduled.append((recipient, event))
        return f"reg-{len(self.scheduled)}"


class BrokenChannel:
    def schedule(self, recipient, event) -> str:
        raise ConnectionError("push gateway unreachable")


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


async def _make_user(session_maker, email: str, full_name: str) -> User:
    async with session_maker() as s:
        user = User(email=email, full_name=full_name, hashed_password="not-a-real-hash")
        s.add(user)
        await s.commit()
        await s.refresh(user)
        return user


@pytest.fixture
async def patient(session_maker) -> User:
    return await _make_user(session_maker, "patient@example.com", "Pat Ient")


@pytest.fixture
async def other_patient(session_maker) -> User:
    return await _make_user(session_maker, "other@example.com", "Other Person")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
async def client(session_maker, clock, channel):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_channel] = lambda: channel
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def patient_headers(patient) -> dict[str, str]:
    return auth_headers(patient)


@pytest.fixture
def other_headers(other_patient) -> dict[str, str]:
    return auth_headers(other_patient)
