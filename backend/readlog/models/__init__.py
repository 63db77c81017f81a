"""
ORM models. Importing this package registers every table on Base.metadata,
which is what ensure_schema() and Alembic autogenerate rely on.
"""

from readlog.models.record import ReadingRecord
from readlog.models.user import User

__all__ = ["ReadingRecord", "User"]
