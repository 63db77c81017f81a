"""
Readlog Backend - ReadingRecord SQLAlchemy Model
=================================================

What:  ORM model for the `records` table: one user's progress through one book.
Who:   Read and written by PersistenceGateway; serialized by RecordResponse.

Table Design:
    - Surrogate integer id, plus UNIQUE (user_id, isbn): a user has at most
      one record per book
    - user_id → users.id ON DELETE CASCADE
    - Book metadata (title, author, cover, genre) is denormalised onto the
      record; there is no books table
    - current_page <= total_pages, both >= 0, also enforced by CHECK
      constraints so a bad write cannot slip past the service layer
    - Lifecycle timestamps are nullable and stamped by RecordService when
      the status changes
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from readlog.database import Base

if TYPE_CHECKING:
    from readlog.models.user import User


class ReadingRecord(Base):
    """
    Tracks one user's progress through one book.

    Query Patterns:
        - All records of a user: WHERE user_id = :uid → idx_records_user_id
        - One record: WHERE user_id = :uid AND isbn = :isbn → uq_records_user_isbn
    """

    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )

    isbn: Mapped[str] = mapped_column(String(20), nullable=False)

    # ── Book metadata ─────────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cover: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Progress ──────────────────────────────────────────────────────────
    # Free text: "reading", "finished", "on-hold", ...
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="reading")
    current_page: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ── Timestamps ────────────────────────────────────────────────────────
    date_added: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    stopped_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship(back_populates="records")

    __table_args__ = (
        UniqueConstraint("user_id", "isbn", name="uq_records_user_isbn"),
        CheckConstraint("current_page >= 0", name="ck_records_current_page_non_negative"),
        CheckConstraint("total_pages >= 0", name="ck_records_total_pages_non_negative"),
        CheckConstraint("current_page <= total_pages", name="ck_records_progress_within_total"),
        Index("idx_records_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReadingRecord(user_id={self.user_id}, isbn='{self.isbn}', "
            f"page={self.current_page}/{self.total_pages})>"
        )
