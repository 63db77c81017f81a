"""
Readlog Backend - Persistence Gateway Tests
============================================

What:  Tests for PersistenceGateway against a real (in-memory SQLite)
       database: lookups, filters, uniqueness and cascading deletes.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from readlog.exceptions import ConflictError, NotFoundError, StorageError
from readlog.gateway import PersistenceGateway
from readlog.models import ReadingRecord, User


def _user(username="alice"):
    return User(username=username, password_hash="$2b$04$hash", favorite_genres=["fantasy"], records=[])


def _record(user_id, isbn="9780441013593", title="Dune", **fields):
    return ReadingRecord(
        user_id=user_id,
        isbn=isbn,
        title=title,
        status=fields.pop("status", "reading"),
        current_page=fields.pop("current_page", 0),
        total_pages=fields.pop("total_pages", 412),
        date_added=fields.pop("date_added", datetime.now(timezone.utc)),
        **fields,
    )


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_and_find_user(self, gateway):
        created = await gateway.create_user(_user())

        assert created.id is not None
        found = await gateway.find_user_by_id(created.id)
        assert found.username == "alice"
        assert found.favorite_genres == ["fantasy"]
        assert found.created_at is not None

    @pytest.mark.asyncio
    async def test_find_missing_user(self, gateway):
        with pytest.raises(NotFoundError, match="User not found"):
            await gateway.find_user_by_id(999)

    @pytest.mark.asyncio
    async def test_find_user_by_username(self, gateway):
        await gateway.create_user(_user("alice"))

        assert (await gateway.find_user_by_username("alice")).username == "alice"
        assert await gateway.find_user_by_username("ALICE") is None

    @pytest.mark.asyncio
    async def test_duplicate_username_is_a_conflict(self, gateway):
        await gateway.create_user(_user("alice"))

        with pytest.raises(ConflictError, match="Username already exists"):
            await gateway.create_user(_user("alice"))

    @pytest.mark.asyncio
    async def test_username_taken_excludes_self(self, gateway):
        alice = await gateway.create_user(_user("alice"))

        assert await gateway.username_taken("alice") is True
        assert await gateway.username_taken("alice", exclude_id=alice.id) is False
        assert await gateway.username_taken("bob") is False

    @pytest.mark.asyncio
    async def test_find_users_with_substring_filter(self, gateway):
        for name in ("alice", "bob", "malory"):
            await gateway.create_user(_user(name))

        everyone = await gateway.find_users()
        with_al = await gateway.find_users(username_contains="al")
        with_percent = await gateway.find_users(username_contains="%")

        assert [u.username for u in everyone] == ["alice", "bob", "malory"]
        assert [u.username for u in with_al] == ["alice", "malory"]
        assert with_percent == []

    @pytest.mark.asyncio
    async def test_delete_user_cascades_to_records(self, gateway):
        alice = await gateway.create_user(_user("alice"))
        bob = await gateway.create_user(_user("bob"))
        await gateway.create_record(_record(alice.id, isbn="111"))
        await gateway.create_record(_record(alice.id, isbn="222"))
        await gateway.create_record(_record(bob.id, isbn="111"))

        await gateway.delete_user(alice)

        assert await gateway.find_records(user_id=alice.id) == []
        remaining = await gateway.find_records()
        assert [(r.user_id, r.isbn) for r in remaining] == [(bob.id, "111")]
        with pytest.raises(NotFoundError):
            await gateway.find_user_by_id(alice.id)


class TestRecords:

    @pytest.mark.asyncio
    async def test_find_one_record(self, gateway):
        alice = await gateway.create_user(_user())
        await gateway.create_record(_record(alice.id))

        record = await gateway.find_one_record(alice.id, "9780441013593")

        assert record.title == "Dune"
        assert await gateway.record_exists(alice.id, "9780441013593") is True
        assert await gateway.record_exists(alice.id, "000") is False

    @pytest.mark.asyncio
    async def test_find_one_record_missing(self, gateway):
        with pytest.raises(NotFoundError, match="Record not found for the specified user and ISBN"):
            await gateway.find_one_record(1, "9780441013593")

    @pytest.mark.asyncio
    async def test_same_isbn_twice_for_one_user_is_a_conflict(self, gateway):
        alice = await gateway.create_user(_user())
        await gateway.create_record(_record(alice.id))

        with pytest.raises(ConflictError):
            await gateway.create_record(_record(alice.id))

    @pytest.mark.asyncio
    async def test_record_for_missing_user_violates_foreign_key(self, gateway):
        with pytest.raises(ConflictError):
            await gateway.create_record(_record(user_id=999))

    @pytest.mark.asyncio
    async def test_find_records_filters(self, gateway):
        alice = await gateway.create_user(_user("alice"))
        bob = await gateway.create_user(_user("bob"))
        await gateway.create_record(_record(alice.id, isbn="111"))
        await gateway.create_record(_record(alice.id, isbn="222"))
        await gateway.create_record(_record(bob.id, isbn="111"))

        assert len(await gateway.find_records()) == 3
        assert [r.isbn for r in await gateway.find_records(user_id=alice.id)] == ["111", "222"]
        only = await gateway.find_records(user_id=bob.id, isbn="111")
        assert [(r.user_id, r.isbn) for r in only] == [(bob.id, "111")]
        assert await gateway.find_records(user_id=bob.id, isbn="222") == []

    @pytest.mark.asyncio
    async def test_save_and_delete_record(self, gateway):
        alice = await gateway.create_user(_user())
        record = await gateway.create_record(_record(alice.id))

        record.current_page = 100
        await gateway.save_record(record)
        assert (await gateway.find_one_record(alice.id, record.isbn)).current_page == 100

        await gateway.delete_record(record)
        assert await gateway.record_exists(alice.id, record.isbn) is False

    @pytest.mark.asyncio
    async def test_page_beyond_total_is_refused_by_the_database(self, gateway):
        alice = await gateway.create_user(_user())

        with pytest.raises(ConflictError):
            await gateway.create_record(_record(alice.id, current_page=500, total_pages=10))


class TestErrorMapping:

    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_errors(self):
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
        gateway = PersistenceGateway(session)

        with pytest.raises(StorageError) as exc_info:
            await gateway.find_users()

        assert "database is locked" not in exc_info.value.message
        assert exc_info.value.context["operation"] == "find_users"
        assert exc_info.value.context["error_type"] == "OperationalError"
