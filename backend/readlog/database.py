"""
Readlog Backend - Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, schema sync, and the
       per-request session dependency.
How:   One engine (and its connection pool) is created at import time.
       Every request gets its own AsyncSession that commits on success and
       rolls back on error.
Who:   The session dependency is consumed by `readlog.gateway.get_gateway`.

Connection Pooling:
    pool_size / max_overflow bound the open connections, pool_recycle bounds
    their lifetime and pool_timeout bounds how long a request waits for a
    free one. When the wait times out the driver error surfaces through the
    gateway as StorageError.

    SQLite has no server-side connections, so the pool arguments are only
    applied to real database servers. SQLite connections get
    PRAGMA foreign_keys=ON so ON DELETE CASCADE is honoured.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from readlog.config import settings

logger = logging.getLogger(__name__)


def install_sqlite_pragmas(async_engine: AsyncEngine) -> None:
    """Enable foreign key enforcement on every new SQLite connection."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool settings come from `settings`; SQLite URLs skip them and get the
    foreign-key pragma instead.
    """
    engine_args: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        engine_args.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )

    async_engine = create_async_engine(database_url, **engine_args)
    if database_url.startswith("sqlite"):
        install_sqlite_pragmas(async_engine)
    return async_engine


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)

# expire_on_commit=False: response schemas read attributes after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models (shared metadata for Alembic)."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the request (via the gateway)
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ensure_schema(target: Optional[AsyncEngine] = None) -> None:
    """
    Idempotently create the users and records tables with their foreign
    key and unique constraints.

    When:  Once at startup if AUTO_CREATE_SCHEMA is enabled. Managed
           deployments run `alembic upgrade head` instead.
    """
    # Model modules register their tables on Base.metadata when imported
    from readlog.models import ReadingRecord, User  # noqa: F401

    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))


async def dispose_engine() -> None:
    """Close all pooled connections; called during application shutdown."""
    await engine.dispose()
