"""
Readlog Backend - Persistence Gateway
======================================

What:  All ORM access for users and reading records, behind one small API.
How:   A PersistenceGateway wraps the request's AsyncSession. Every
       operation runs inside `_guard`, which turns SQLAlchemy failures into
       application exceptions:
           missing row                → NotFoundError   (404)
           IntegrityError on write    → ConflictError   (409)
           any other SQLAlchemyError  → StorageError    (500)
Who:   Built per request by the `get_gateway` dependency and passed into
       UserService / RecordService. Services never see the session.

Writes flush immediately so constraint violations surface here, inside
the guarded call, rather than at commit time in get_db_session.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from readlog.database import get_db_session
from readlog.exceptions import ConflictError, NotFoundError, StorageError
from readlog.models import ReadingRecord, User

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """
    CRUD and lookup operations over User and ReadingRecord.

    Users are always returned with their records loaded (the relationship
    is selectin-loaded), so callers can serialize them without further I/O.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(
        self,
        operation: str,
        conflict_message: str = "The resource already exists",
        **context: Any,
    ) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as e:
            logger.warning("Integrity violation during %s: %s", operation, e.orig)
            raise ConflictError(
                message=conflict_message,
                context={"operation": operation, **context},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
            raise StorageError(
                context={
                    "operation": operation,
                    "error_type": type(e).__name__,
                    "error": str(e),
                    **context,
                },
            ) from e

    # ══════════════════════════════════════════════════════════════════════
    # Users
    # ══════════════════════════════════════════════════════════════════════

    async def find_users(self, username_contains: Optional[str] = None) -> List[User]:
        query = select(User).order_by(User.id)
        if username_contains:
            query = query.where(User.username.contains(username_contains, autoescape=True))

        async with self._guard("find_users"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def find_user_by_id(self, user_id: int) -> User:
        """Return the user with the given id, or raise NotFoundError."""
        async with self._guard("find_user_by_id", user_id=user_id):
            user = await self.session.get(User, user_id)

        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id), message="User not found")
        return user

    async def find_user_by_username(self, username: str) -> Optional[User]:
        async with self._guard("find_user_by_username"):
            result = await self.session.execute(
                select(User).where(User.username == username)
            )
            return result.scalar_one_or_none()

    async def username_taken(self, username: str, exclude_id: Optional[int] = None) -> bool:
        """True if another user (not `exclude_id`) already holds `username`."""
        query = select(User.id).where(User.username == username)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)

        async with self._guard("username_taken"):
            result = await self.session.execute(query.limit(1))
            return result.scalar_one_or_none() is not None

    async def create_user(self, user: User) -> User:
        async with self._guard(
            "create_user",
            conflict_message="Username already exists",
            username=user.username,
        ):
            self.session.add(user)
            await self.session.flush()
        logger.info("User %d created (%s)", user.id, user.username)
        return user

    async def save_user(self, user: User) -> User:
        async with self._guard(
            "save_user",
            conflict_message="Username already exists",
            user_id=user.id,
        ):
            await self.session.flush()
        return user

    async def delete_user(self, user: User) -> None:
        """Delete a user; their records are removed by cascade."""
        user_id = user.id
        record_count = len(user.records)
        async with self._guard("delete_user", user_id=user_id):
            await self.session.delete(user)
            await self.session.flush()
        logger.info("User %d deleted with %d record(s)", user_id, record_count)

    # ══════════════════════════════════════════════════════════════════════
    # Reading records
    # ══════════════════════════════════════════════════════════════════════

    async def find_records(
        self,
        user_id: Optional[int] = None,
        isbn: Optional[str] = None,
    ) -> List[ReadingRecord]:
        """Records matching every filter that is supplied; all records if none."""
        query = select(ReadingRecord)
        if user_id is not None:
            query = query.where(ReadingRecord.user_id == user_id)
        if isbn is not None:
            query = query.where(ReadingRecord.isbn == isbn)
        query = query.order_by(ReadingRecord.date_added, ReadingRecord.id)

        async with self._guard("find_records", user_id=user_id, isbn=isbn):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def find_one_record(self, user_id: int, isbn: str) -> ReadingRecord:
        """Return the record for (user_id, isbn), or raise NotFoundError."""
        async with self._guard("find_one_record", user_id=user_id, isbn=isbn):
            result = await self.session.execute(
                select(ReadingRecord).where(
                    ReadingRecord.user_id == user_id,
                    ReadingRecord.isbn == isbn,
                )
            )
            record = result.scalar_one_or_none()

        if record is None:
            raise NotFoundError(
                resource="record",
                resource_id=f"{user_id}/{isbn}",
                message="Record not found for the specified user and ISBN",
            )
        return record

    async def record_exists(self, user_id: int, isbn: str) -> bool:
        async with self._guard("record_exists", user_id=user_id, isbn=isbn):
            result = await self.session.execute(
                select(ReadingRecord.id)
                .where(ReadingRecord.user_id == user_id, ReadingRecord.isbn == isbn)
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def create_record(self, record: ReadingRecord) -> ReadingRecord:
        async with self._guard(
            "create_record",
            conflict_message="A record for this user and ISBN already exists",
            user_id=record.user_id,
            isbn=record.isbn,
        ):
            self.session.add(record)
            await self.session.flush()
        logger.info("Record %d created for user %d (isbn=%s)", record.id, record.user_id, record.isbn)
        return record

    async def save_record(self, record: ReadingRecord) -> ReadingRecord:
        async with self._guard(
            "save_record",
            conflict_message="A record for this user and ISBN already exists",
            record_id=record.id,
        ):
            await self.session.flush()
        return record

    async def delete_record(self, record: ReadingRecord) -> None:
        async with self._guard("delete_record", record_id=record.id):
            await self.session.delete(record)
            await self.session.flush()
        logger.info("Record %d deleted (user=%d, isbn=%s)", record.id, record.user_id, record.isbn)


# ── Dependency ────────────────────────────────────────────────────────────
async def get_gateway(db: AsyncSession = Depends(get_db_session)) -> PersistenceGateway:
    """FastAPI dependency: a gateway bound to this request's session."""
    return PersistenceGateway(db)
