"""
Readlog Backend - Reading Record Service
=========================================

What:  Business rules for reading records: filtered listing, creation,
       progress updates and deletion.
Who:   Called by the /records route handlers.

Rules:
    - a record is identified by (user_id, isbn); a user has at most one per book
    - ISBNs are compared after trimming surrounding whitespace, on every
      operation, matching how create stores them
    - current_page never exceeds total_pages; a rejected update leaves the
      stored record untouched
    - list filters: none → all, userId → that user's, userId + isbn → the
      one matching record (as a list), isbn alone → rejected
    - status changes stamp lifecycle timestamps:
          reading              → started_at (first time only)
          finished             → finished_at (first time only)
          on-hold/stopped/dropped → stopped_at (each time it is entered)
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from readlog.exceptions import ConflictError, ValidationError
from readlog.gateway import PersistenceGateway
from readlog.models import ReadingRecord
from readlog.schemas.record import RecordCreate, RecordResponse

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "reading"
STOPPED_STATUSES = {"on-hold", "stopped", "dropped"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def stamp_status(record: ReadingRecord, status: str, previous: Optional[str], now: datetime) -> None:
    """Set the lifecycle timestamp that matches a status the record is entering."""
    key = status.lower()
    if previous is not None and previous.lower() == key:
        return

    if key == "reading":
        if record.started_at is None:
            record.started_at = now
    elif key == "finished":
        if record.finished_at is None:
            record.finished_at = now
    elif key in STOPPED_STATUSES:
        record.stopped_at = now


class RecordService:
    """Business logic layer for reading records."""

    async def list(
        self,
        gateway: PersistenceGateway,
        user_id: Optional[int] = None,
        isbn: Optional[str] = None,
    ) -> List[RecordResponse]:
        if isbn is not None and user_id is None:
            raise ValidationError(
                message="Filtering by isbn requires a userId",
                field="isbn",
            )
        if isbn is not None:
            isbn = isbn.strip()
        records = await gateway.find_records(user_id=user_id, isbn=isbn)
        return [RecordResponse.model_validate(r) for r in records]

    async def get(self, gateway: PersistenceGateway, user_id: int, isbn: str) -> RecordResponse:
        record = await gateway.find_one_record(user_id, isbn.strip())
        return RecordResponse.model_validate(record)

    async def create(self, gateway: PersistenceGateway, payload: RecordCreate) -> RecordResponse:
        """
        Start tracking a book for a user.

        Raises:
            ValidationError: missing user/ISBN/title, or current page > total pages
            NotFoundError: the user does not exist
            ConflictError: the user already has a record for this ISBN
        """
        isbn = payload.isbn.strip()
        title = payload.title.strip()
        if payload.user_id is None or payload.user_id <= 0 or not isbn or not title:
            raise ValidationError(message="UserID, ISBN, and Title are required fields")

        if payload.current_page > payload.total_pages:
            raise ValidationError(
                message="Current page cannot exceed total pages",
                field="currentPage",
            )

        await gateway.find_user_by_id(payload.user_id)

        if await gateway.record_exists(payload.user_id, isbn):
            raise ConflictError(
                message="A record for this user and ISBN already exists",
                context={"user_id": payload.user_id, "isbn": isbn},
            )

        now = _now()
        status = payload.status.strip() or DEFAULT_STATUS
        record = ReadingRecord(
            user_id=payload.user_id,
            isbn=isbn,
            title=title,
            author=payload.author,
            cover=payload.cover,
            genre=payload.genre,
            status=status,
            current_page=payload.current_page,
            total_pages=payload.total_pages,
            date_added=now,
        )
        stamp_status(record, status, previous=None, now=now)

        record = await gateway.create_record(record)
        return RecordResponse.model_validate(record)

    async def update_progress(
        self,
        gateway: PersistenceGateway,
        user_id: int,
        isbn: str,
        current_page: int,
        status: Optional[str] = None,
    ) -> RecordResponse:
        """
        Move a record to a new page (and optionally a new status).
        A missing or blank status leaves the stored status unchanged.

        All checks run before the record is touched, so a rejected update
        changes nothing.
        """
        record = await gateway.find_one_record(user_id, isbn.strip())

        if current_page > record.total_pages:
            raise ValidationError(
                message="Current page cannot exceed total pages",
                field="currentPage",
                context={"current_page": current_page, "total_pages": record.total_pages},
            )

        # Omitted or blank status keeps the stored one
        new_status = (status or "").strip()

        now = _now()
        if new_status:
            stamp_status(record, new_status, previous=record.status, now=now)
            record.status = new_status
        record.current_page = current_page
        record.updated_at = now

        await gateway.save_record(record)
        logger.info(
            "Record %d progress: page %d/%d (%s)",
            record.id, record.current_page, record.total_pages, record.status,
        )
        return RecordResponse.model_validate(record)

    async def delete(self, gateway: PersistenceGateway, user_id: int, isbn: str) -> None:
        record = await gateway.find_one_record(user_id, isbn.strip())
        await gateway.delete_record(record)


record_service = RecordService()
