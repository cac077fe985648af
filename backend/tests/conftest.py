"""
Test configuration and fixtures.
Uses an in-memory SQLite database (aiosqlite) per test.
"""
import os

# Set test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test_webhook_secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_PLAN_BASIC"] = "plan_basic_test"
os.environ["RAZORPAY_PLAN_PREMIUM"] = "plan_premium_test"
os.environ.pop("RESEND_API_KEY", None)

import pytest
from typing import AsyncGenerator

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from ideaboard.ai.base import LLMProvider
from ideaboard.models.base import Base, utcnow
from ideaboard.models.profile import UserProfile

from helpers import NOW, FakeProvider, RecordingNotifier, make_profile, make_subscription


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Session factory over a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> UserProfile:
    """Free-plan user with no usage yet."""
    return await make_profile(db_session, "firebase-free-user")


@pytest.fixture(scope="function")
async def basic_user(db_session: AsyncSession) -> UserProfile:
    """Basic-plan user with 4 of 5 generations used this month."""
    profile = await make_profile(
        db_session, "firebase-basic-user", generation_count=4, last_generation_reset=NOW.replace(day=1)
    )
    await make_subscription(db_session, profile.id, "basic")
    return profile


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def get_test_app(
    db_session: AsyncSession,
    user: UserProfile,
    provider: LLMProvider,
    notifier: RecordingNotifier,
) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from ideaboard.main import app
    from ideaboard.database import get_db
    from ideaboard.auth.dependencies import get_current_user
    from ideaboard.api.ideas import get_ai_provider
    from ideaboard.services.notification_service import get_notification_service

    async def override_get_db():
        yield db_session

    async def override_get_current_user():
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_ai_provider] = lambda: provider
    app.dependency_overrides[get_notification_service] = lambda: notifier

    return app


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    test_user: UserProfile,
    fake_provider: FakeProvider,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(db_session, test_user, fake_provider, notifier)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def maxed_out_user(db_session: AsyncSession) -> UserProfile:
    """Basic-plan user who has used all 5 generations this month."""
    profile = await make_profile(db_session, "firebase-maxed-user", generation_count=5, last_generation_reset=utcnow())
    await make_subscription(db_session, profile.id, "basic")
    return profile


@pytest.fixture(scope="function")
async def client_maxed_out(
    db_session: AsyncSession,
    maxed_out_user: UserProfile,
    fake_provider: FakeProvider,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for a user with no generations left."""
    app = get_test_app(db_session, maxed_out_user, fake_provider, notifier)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
