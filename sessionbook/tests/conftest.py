"""
Shared pytest configuration for sessionbook tests.

Tests run against an in-memory SQLite database (aiosqlite) by default; set
TEST_DATABASE_URL to run them against another database. Environment flags
are set before any sessionbook module is imported so module-level config
(rate limiter, email switch) picks them up.
"""

import os

os.environ["ENV"] = "test"
os.environ.setdefault("ENABLE_EMAIL", "false")
os.environ.setdefault("ENABLE_ARCHIVE_WORKER", "false")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")

from datetime import timedelta  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from sessionbook.database import db  # noqa: E402
from sessionbook.database.db import Base, get_db_session  # noqa: E402
from sessionbook.database.models import Session  # noqa: E402
from sessionbook.services import auth_service, rate_limiting_service  # noqa: E402
from sessionbook.utils.datetime_utils import utcnow  # noqa: E402

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a fresh database (all tables) for each test."""
    # StaticPool keeps one connection, so the in-memory database is shared
    # between the test's session and the app's sessions
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Code that opens its own sessions (background workers) uses the test engine too
    test_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = test_session_maker

    yield engine

    db.AsyncSessionLocal = original_async_session_local
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Database session for arranging and asserting on test data."""
    async with db.AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(test_engine):
    """HTTP client against the app with the database dependency pointed at the test engine."""
    from sessionbook.api.main import app

    async def override_get_db_session():
        async with db.AsyncSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_rate_limit_storage():
    """Clear login rate limit storage before each test to ensure clean state."""
    rate_limiting_service.reset_rate_limit_storage()
    yield
    rate_limiting_service.reset_rate_limit_storage()


@pytest.fixture
def admin_headers():
    """Authorization header carrying a valid admin token."""
    return {"Authorization": f"Bearer {auth_service.create_admin_token()}"}


@pytest.fixture
def make_session(db_session):
    """
    Factory for training sessions. Defaults to a visible U12 session two weeks
    out (so cancellation tokens are still valid).
    """

    async def _make_session(**overrides):
        fields = {
            "sport": "volleyball",
            "age_group": "U12",
            "subgroup": "Intermediate",
            "date": (utcnow() + timedelta(days=14)).replace(hour=12, minute=0, second=0, microsecond=0),
            "time": "3:00 PM - 4:30 PM",
            "location": "Community Center Gym",
            "address": "123 Main St, Redmond, WA 98052",
            "max_participants": 8,
            "current_participants": 0,
            "price": 50,
            "focus": "Serving",
            "is_visible": True,
        }
        fields.update(overrides)
        training = Session(**fields)
        db_session.add(training)
        await db_session.commit()
        await db_session.refresh(training)
        return training

    return _make_session


@pytest.fixture
def registration_payload():
    """Factory for a valid signup body (camelCase, as the public form posts it)."""

    def _payload(**overrides):
        payload = {
            "playerName": "Alex Smith",
            "playerAge": 12,
            "parentName": "Jordan Smith",
            "parentEmail": "parent@example.com",
            "parentPhone": "(206) 555-1234",
            "emergencyContact": "Casey Smith",
            "emergencyPhone": "206-555-9876",
            "medicalInfo": "",
            "experience": "Two seasons of club",
            "specialNotes": "",
        }
        payload.update(overrides)
        return payload

    return _payload
