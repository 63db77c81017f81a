"""
Readlog Backend - User SQLAlchemy Model
========================================

What:  ORM model for the `users` table.
Who:   Read and written by PersistenceGateway; serialized by UserResponse.

Table Design:
    - Integer primary key assigned by the database
    - username: unique (uq_users_username), 3-50 chars enforced by UserService
    - password: bcrypt hash only; the attribute is named `password_hash` so
      no code path can mistake it for plaintext
    - favorite_genres: ordered list stored as JSON (portable across
      PostgreSQL and SQLite)
    - records: one-to-many, always loaded with the user (selectin), deleted
      with the user (ORM cascade plus ON DELETE CASCADE on the FK)
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from readlog.database import Base

if TYPE_CHECKING:
    from readlog.models.record import ReadingRecord


class User(Base):
    """
    A reader account.

    Lifecycle:
        1. Created by registration (POST /users)
        2. Username, password hash and genres replaced by PUT /users/{id}
        3. Deleted by DELETE /users/{id}; every ReadingRecord goes with it
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), nullable=False)

    # Column keeps the conventional name; attribute name signals it is a hash
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)

    favorite_genres: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )

    records: Mapped[List["ReadingRecord"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="ReadingRecord.id",
    )

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
