"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import os

# Settings are read at import time; provide test values before importing app
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-invoice-payments")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.models.base import Base
from app.db.session import get_db
from app.core.auth import create_access_token
from app.services.stripe_service import get_payment_gateway
from tests.factories import (
    FakePaymentGateway,
    NEIGHBOUR_ID,
    RESIDENT_EMAIL,
    RESIDENT_ID,
)


# Test database URL
# WHY: SQLite in memory eliminates external database dependencies and
# makes tests fast. StaticPool keeps the single in-memory database alive.
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(
        TEST_ASYNC_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_gateway() -> FakePaymentGateway:
    """In-memory Stripe stand-in shared by the app and the test body."""
    return FakePaymentGateway()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    fake_gateway: FakePaymentGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: The database and payment gateway are overridden; token
    verification runs for real against the test JWT secret. The session
    override keeps the transaction boundary of get_db (commit on success,
    rollback on error), so tests see what a real request would persist.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        """Override database dependency with test session."""
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def resident_token() -> str:
    """Access token for the resident who owns the test invoices."""
    return create_access_token(user_id=RESIDENT_ID, email=RESIDENT_EMAIL)


@pytest.fixture
def auth_headers(resident_token: str) -> dict:
    """Authorization headers for the resident."""
    return {"Authorization": f"Bearer {resident_token}"}


@pytest.fixture
def neighbour_headers() -> dict:
    """Authorization headers for a different resident."""
    token = create_access_token(user_id=NEIGHBOUR_ID, email="neighbour@example.com")
    return {"Authorization": f"Bearer {token}"}
