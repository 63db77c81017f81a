"""
Readlog Backend - User Service Unit Tests
==========================================

What:  Tests for UserService business rules (register, authenticate, get,
       list, update, delete).
How:   Mock gateway (no database). Hashing is real bcrypt at cost 4 unless
       a test patches it to observe the call.

What we test:
    ✅ Registration validates lengths, rejects taken usernames, stores a hash
    ✅ Login succeeds, and both failure paths give the same 401
    ✅ Unknown usernames still pay for one bcrypt check
    ✅ Update always re-hashes and replaces genres wholesale
    ✅ Responses never carry the password hash
"""

import pytest
from unittest.mock import MagicMock, patch

from readlog.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from readlog.security import hash_password, verify_password
from readlog.services.user_service import UserService


def _persisted(user):
    """create_user side effect: the database assigns an id."""
    user.id = 7
    return user


class TestRegister:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_register_success(self, mock_gateway):
        mock_gateway.username_taken.return_value = False

        mock_gateway.create_user.side_effect = _persisted

        result = await self.service.register(
            mock_gateway, "alice", "secret1", favorite_genres=["fantasy", "sci-fi"]
        )

        assert result.id == 7
        assert result.username == "alice"
        assert result.favorite_genres == ["fantasy", "sci-fi"]
        assert result.records == []

        stored = mock_gateway.create_user.await_args.args[0]
        assert stored.password_hash != "secret1"
        assert verify_password("secret1", stored.password_hash)

    @pytest.mark.asyncio
    async def test_register_without_genres_stores_empty_list(self, mock_gateway):
        mock_gateway.username_taken.return_value = False
        mock_gateway.create_user.side_effect = _persisted

        await self.service.register(mock_gateway, "alice", "secret1")

        stored = mock_gateway.create_user.await_args.args[0]
        assert stored.favorite_genres == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", ["ab", "a" * 51, ""])
    async def test_register_rejects_bad_username_length(self, mock_gateway, username):
        with pytest.raises(ValidationError, match="Username must be between 3 and 50"):
            await self.service.register(mock_gateway, username, "secret1")
        mock_gateway.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_register_accepts_boundary_lengths(self, mock_gateway):
        mock_gateway.username_taken.return_value = False
        mock_gateway.create_user.side_effect = _persisted

        await self.service.register(mock_gateway, "abc", "secret")
        await self.service.register(mock_gateway, "a" * 50, "secret")

        assert mock_gateway.create_user.await_count == 2

    @pytest.mark.asyncio
    async def test_register_rejects_short_password(self, mock_gateway):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await self.service.register(mock_gateway, "alice", "12345")

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, mock_gateway):
        mock_gateway.username_taken.return_value = True

        with pytest.raises(ConflictError, match="Username already exists"):
            await self.service.register(mock_gateway, "alice", "secret1")
        mock_gateway.create_user.assert_not_awaited()


class TestAuthenticate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_login_success(self, mock_gateway, make_user, make_record):
        user = make_user(
            username="alice",
            password_hash=hash_password("secret1"),
            records=[make_record()],
        )
        mock_gateway.find_user_by_username.return_value = user

        result = await self.service.authenticate(mock_gateway, "alice", "secret1")

        assert result.id == user.id
        assert len(result.records) == 1
        assert "password" not in result.model_dump()
        assert "password_hash" not in result.model_dump()

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, mock_gateway, make_user):
        mock_gateway.find_user_by_username.return_value = make_user(
            password_hash=hash_password("secret1")
        )
        with pytest.raises(AuthenticationError) as wrong_password:
            await self.service.authenticate(mock_gateway, "reader", "nope-nope")

        mock_gateway.find_user_by_username.return_value = None
        with pytest.raises(AuthenticationError) as unknown_user:
            await self.service.authenticate(mock_gateway, "ghost", "nope-nope")

        assert wrong_password.value.message == unknown_user.value.message
        assert wrong_password.value.message == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_unknown_user_still_checks_a_hash(self, mock_gateway):
        mock_gateway.find_user_by_username.return_value = None

        with patch(
            "readlog.services.user_service.verify_password",
            MagicMock(return_value=False),
        ) as mock_verify:
            with pytest.raises(AuthenticationError):
                await self.service.authenticate(mock_gateway, "ghost", "secret1")

        mock_verify.assert_called_once()
        checked_password, checked_hash = mock_verify.call_args.args
        assert checked_password == "secret1"
        assert checked_hash.startswith("$2")


class TestGetAndList:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_get_user(self, mock_gateway, make_user):
        mock_gateway.find_user_by_id.return_value = make_user(id=3, email="a@example.com")

        result = await self.service.get(mock_gateway, 3)

        assert result.id == 3
        assert result.email == "a@example.com"

    @pytest.mark.asyncio
    async def test_get_missing_user_propagates(self, mock_gateway):
        mock_gateway.find_user_by_id.side_effect = NotFoundError(
            resource="user", resource_id="99", message="User not found"
        )
        with pytest.raises(NotFoundError, match="User not found"):
            await self.service.get(mock_gateway, 99)

    @pytest.mark.asyncio
    async def test_list_passes_username_filter(self, mock_gateway, make_user):
        mock_gateway.find_users.return_value = [make_user(id=1), make_user(id=2, username="bob")]

        result = await self.service.list(mock_gateway, username_contains="o")

        assert [u.id for u in result] == [1, 2]
        mock_gateway.find_users.assert_awaited_once_with(username_contains="o")


class TestUpdate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_update_rehashes_even_unchanged_password(self, mock_gateway, make_user):
        old_hash = hash_password("secret1")
        user = make_user(username="alice", password_hash=old_hash, favorite_genres=["horror"])
        mock_gateway.find_user_by_id.return_value = user

        result = await self.service.update(mock_gateway, 1, "alice", "secret1")

        assert user.password_hash != old_hash
        assert verify_password("secret1", user.password_hash)
        assert user.favorite_genres == []
        assert result.favorite_genres == []
        mock_gateway.username_taken.assert_not_awaited()
        mock_gateway.save_user.assert_awaited_once_with(user)

    @pytest.mark.asyncio
    async def test_update_replaces_username_and_genres(self, mock_gateway, make_user):
        user = make_user(username="alice", email="old@example.com")
        mock_gateway.find_user_by_id.return_value = user
        mock_gateway.username_taken.return_value = False

        result = await self.service.update(
            mock_gateway, 1, "alicia", "newsecret", favorite_genres=["poetry"]
        )

        assert result.username == "alicia"
        assert result.favorite_genres == ["poetry"]
        assert result.email == "old@example.com"
        mock_gateway.username_taken.assert_awaited_once_with("alicia", exclude_id=1)

    @pytest.mark.asyncio
    async def test_update_to_taken_username(self, mock_gateway, make_user):
        user = make_user(username="alice")
        mock_gateway.find_user_by_id.return_value = user
        mock_gateway.username_taken.return_value = True

        with pytest.raises(ConflictError):
            await self.service.update(mock_gateway, 1, "bob", "secret1")

        assert user.username == "alice"
        mock_gateway.save_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_validates_before_lookup(self, mock_gateway):
        with pytest.raises(ValidationError):
            await self.service.update(mock_gateway, 1, "al", "secret1")
        mock_gateway.find_user_by_id.assert_not_awaited()


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_user(self, mock_gateway, make_user):
        user = make_user()
        mock_gateway.find_user_by_id.return_value = user

        await UserService().delete(mock_gateway, 1)

        mock_gateway.delete_user.assert_awaited_once_with(user)
