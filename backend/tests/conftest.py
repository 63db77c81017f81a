"""
Readlog Backend - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_gateway: AsyncMock PersistenceGateway for service unit tests
    ├── db_engine: fresh in-memory SQLite engine with the schema created
    ├── db_session: AsyncSession on db_engine (gateway tests)
    ├── gateway: PersistenceGateway over db_session
    └── test_client: HTTPX AsyncClient against the app, with the request
                     session dependency pointed at db_engine
"""

import os

# Settings are read at import time, so the environment is set before any
# readlog import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTO_CREATE_SCHEMA"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["LOGIN_RATE_LIMIT_REQUESTS"] = "10000"

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readlog import database
from readlog.database import Base, build_engine, get_db_session
from readlog.gateway import PersistenceGateway
from readlog.models import ReadingRecord, User


# ══════════════════════════════════════════════════════════════════════════
# Service-level fixtures (no database)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_gateway():
    """
    An AsyncMock standing in for PersistenceGateway.

    Usage:
        async def test_get(mock_gateway):
            mock_gateway.find_user_by_id.return_value = make_user()
            result = await user_service.get(mock_gateway, 1)
    """
    return AsyncMock(spec=PersistenceGateway)


@pytest.fixture
def make_user():
    """Factory for detached User rows with sensible defaults."""

    def _make(**overrides) -> User:
        fields = {
            "id": 1,
            "username": "reader",
            "password_hash": "$2b$04$notarealhashnotarealhashnotarealhashnotarealhash12",
            "email": None,
            "favorite_genres": [],
            "created_at": datetime(2024, 1, 15, tzinfo=timezone.utc),
            "records": [],
        }
        fields.update(overrides)
        return User(**fields)

    return _make


@pytest.fixture
def make_record():
    """Factory for detached ReadingRecord rows with sensible defaults."""

    def _make(**overrides) -> ReadingRecord:
        fields = {
            "id": 1,
            "user_id": 1,
            "isbn": "9780441013593",
            "title": "Dune",
            "author": "Frank Herbert",
            "cover": None,
            "genre": "sci-fi",
            "status": "reading",
            "current_page": 10,
            "total_pages": 100,
            "date_added": datetime(2024, 1, 15, tzinfo=timezone.utc),
            "started_at": datetime(2024, 1, 15, tzinfo=timezone.utc),
            "updated_at": None,
            "stopped_at": None,
            "finished_at": None,
        }
        fields.update(overrides)
        return ReadingRecord(**fields)

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Database fixtures (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A private in-memory database per test.

    build_engine installs the foreign-key pragma, so ON DELETE CASCADE
    behaves as it does on PostgreSQL.
    """
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def gateway(db_session) -> PersistenceGateway:
    return PersistenceGateway(db_session)


@pytest_asyncio.fixture
async def test_client(db_engine, monkeypatch):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Every request gets its own session on the test engine, with the same
    commit/rollback behaviour as the production dependency. /health is
    pointed at the test engine as well.

    Usage:
        async def test_ping(test_client):
            response = await test_client.get("/ping")
            assert response.status_code == 200
    """
    from readlog.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    monkeypatch.setattr(database, "engine", db_engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def broken_engine():
    """An engine stand-in whose connect() always fails."""
    engine = MagicMock()
    engine.connect.side_effect = OSError("connection refused")
    return engine
