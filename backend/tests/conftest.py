"""Pytest configuration and fixtures for testing."""

import os

# Use in-memory SQLite and skip Redis-backed rate limiting during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog.api.deps import get_clock
from catalog.core.database import Base, get_db
from catalog.main import app
from catalog.models import CurationSlot, Product  # noqa: F401  (register tables)

# Fixed "now" for month-window tests: March 2026
FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

ProductFactory = Callable[..., Awaitable[Product]]


# Database fixtures
@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Required for SQLite in-memory async
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


# Product factory fixture
@pytest_asyncio.fixture
async def make_product(db_session: AsyncSession) -> ProductFactory:
    """Insert a product directly, bypassing the services.

    Each call gets a creation time one minute after the previous one so
    "newest first" ordering is deterministic.
    """
    counter = {"n": 0}

    async def _make(**overrides) -> Product:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"Product {n}",
            "description": f"Description {n}",
            "price": Decimal("100.00"),
            "category": "Furniture",
            "sku": f"SKU-{n:04d}-{uuid4().hex[:6]}",
            "year": 2024,
            "month": "March",
            "status": "Active",
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=n),
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _make


# HTTP client fixture
@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the test database and a fixed clock."""

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# Mock Redis client fixture
@pytest.fixture
def mock_redis() -> AsyncMock:
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.register_script = MagicMock()
    return redis
