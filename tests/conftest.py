"""
Shared test fixtures for the HR Ledger test suite.

Async throughout (aiosqlite + AsyncSession); time is frozen through the
``get_clock`` dependency so late / day-boundary rules are deterministic.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TIMEZONE_OFFSET"] = "+00:00"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrledger.api.v1.deps import get_clock, get_db
from hrledger.core.security import create_access_token
from hrledger.db.base import Base
from hrledger.main import app
from hrledger.models.user import User
from hrledger.services.directory import Directory

# Create a test engine for the entire session
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FrozenClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int = 0, second: int = 0) -> None:
        self.now = self.now.replace(hour=hour, minute=minute, second=second)

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
def clock() -> FrozenClock:
    """Monday 2025-03-10, 09:05 UTC."""
    frozen = FrozenClock(datetime(2025, 3, 10, 9, 5, tzinfo=timezone.utc))
    app.dependency_overrides[get_clock] = lambda: frozen
    yield frozen
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
async def async_client(clock: FrozenClock) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Users & auth ────────────────────────────────────────────────────
@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory creating users through the Directory."""
    counter = {"n": 0}

    async def _make(role: str = "employee", manager_id: int | None = None, **kwargs) -> User:
        counter["n"] += 1
        n = counter["n"]
        result = await Directory(db_session).create_user(
            email=kwargs.pop("email", f"{role}{n}@example.com"),
            password=kwargs.pop("password", "secret123"),
            full_name=kwargs.pop("full_name", f"{role.title()} {n}"),
            role=role,
            manager_id=manager_id,
            **kwargs,
        )
        assert result.success, result.error
        return result.value

    return _make


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Bearer headers for a given user."""
    return auth_headers


@pytest.fixture
async def employee(make_user) -> User:
    return await make_user("employee", email="employee@example.com", full_name="Eve Employee")


@pytest.fixture
async def manager(make_user) -> User:
    return await make_user("manager", email="manager@example.com", full_name="Max Manager")


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user("admin", email="admin@example.com", full_name="Ada Admin")


@pytest.fixture
async def report(make_user, manager) -> User:
    """An employee whose leave is routed to ``manager``."""
    return await make_user(
        "employee", manager_id=manager.id, email="report@example.com", full_name="Rita Report"
    )
