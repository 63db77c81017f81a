"""Create users and records tables

Revision ID: 001
Revises: None
Create Date: 2024-03-02 00:00:00.000000+00:00

What:  Creates `users` and `records` with the unique username, the
       one-record-per-book constraint and the cascading foreign key.
How:   Portable column types only (Integer, String, JSON, DateTime with
       timezone) so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        # bcrypt hash, never plaintext
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column(
            "favorite_genres",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'[]'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("isbn", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("author", sa.String(255), nullable=True),
        sa.Column("cover", sa.String(512), nullable=True),
        sa.Column("genre", sa.String(100), nullable=True),
        sa.Column(
            "status",
            sa.String(50),
            nullable=False,
            server_default=sa.text("'reading'"),
        ),
        sa.Column("current_page", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_pages", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "date_added",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stopped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "isbn", name="uq_records_user_isbn"),
        sa.CheckConstraint("current_page >= 0", name="ck_records_current_page_non_negative"),
        sa.CheckConstraint("total_pages >= 0", name="ck_records_total_pages_non_negative"),
        sa.CheckConstraint("current_page <= total_pages", name="ck_records_progress_within_total"),
    )

    # "All records of a user" is the most common read
    op.create_index("idx_records_user_id", "records", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_records_user_id", table_name="records")
    op.drop_table("records")
    op.drop_table("users")
