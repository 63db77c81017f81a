"""
Readlog Backend - User Service
===============================

What:  Business rules for user accounts: registration, login, lookup,
       profile replacement and deletion.
How:   Validates input, talks to the PersistenceGateway, hashes and checks
       passwords in a worker thread, and returns UserResponse objects.
Who:   Called by the /users and /auth route handlers.

Rules:
    - username: 3-50 characters, unique across all users
    - password: at least 6 characters; stored only as a bcrypt hash
    - every update re-hashes the password, even if it is textually unchanged
    - unknown username and wrong password fail identically (401), and take
      roughly the same time because a dummy hash is checked for unknown users
    - deleting a user deletes their reading records (cascade)

UserService is stateless: the gateway is passed into every call.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from readlog.exceptions import AuthenticationError, ConflictError, ValidationError
from readlog.gateway import PersistenceGateway
from readlog.models import User
from readlog.schemas.user import UserResponse
from readlog.security import hash_password, verify_password

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


@lru_cache(maxsize=1)
def _timing_dummy_hash() -> str:
    """Hash checked when the username is unknown, so both 401 paths cost one bcrypt check."""
    return hash_password("readlog-timing-equalizer")


class UserService:
    """Business logic layer for user accounts."""

    @staticmethod
    def _validate_credentials(username: str, password: str) -> None:
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationError(
                message=(
                    f"Username must be between {USERNAME_MIN_LENGTH} and "
                    f"{USERNAME_MAX_LENGTH} characters"
                ),
                field="username",
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
                field="password",
            )

    async def register(
        self,
        gateway: PersistenceGateway,
        username: str,
        password: str,
        favorite_genres: Optional[List[str]] = None,
        email: Optional[str] = None,
    ) -> UserResponse:
        """
        Create a new account.

        Raises:
            ValidationError: username/password length rules
            ConflictError: username already taken
            HashingError: bcrypt failure
        """
        self._validate_credentials(username, password)

        if await gateway.username_taken(username):
            raise ConflictError(message="Username already exists", context={"username": username})

        password_hash = await run_in_threadpool(hash_password, password)
        user = User(
            username=username,
            password_hash=password_hash,
            email=email,
            favorite_genres=list(favorite_genres or []),
            records=[],
        )
        user = await gateway.create_user(user)
        return UserResponse.from_user(user)

    async def authenticate(
        self,
        gateway: PersistenceGateway,
        username: str,
        password: str,
    ) -> UserResponse:
        """Verify credentials and return the user with their records."""
        user = await gateway.find_user_by_username(username)

        if user is None:
            await run_in_threadpool(verify_password, password, _timing_dummy_hash())
            logger.warning("Login failed: unknown username")
            raise AuthenticationError()

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.warning("Login failed: wrong password for user %d", user.id)
            raise AuthenticationError()

        logger.info("User %d authenticated", user.id)
        return UserResponse.from_user(user)

    async def get(self, gateway: PersistenceGateway, user_id: int) -> UserResponse:
        user = await gateway.find_user_by_id(user_id)
        return UserResponse.from_user(user)

    async def list(
        self,
        gateway: PersistenceGateway,
        username_contains: Optional[str] = None,
    ) -> List[UserResponse]:
        users = await gateway.find_users(username_contains=username_contains)
        return [UserResponse.from_user(user) for user in users]

    async def update(
        self,
        gateway: PersistenceGateway,
        user_id: int,
        username: str,
        password: str,
        favorite_genres: Optional[List[str]] = None,
        email: Optional[str] = None,
    ) -> UserResponse:
        """
        Replace username, password and favorite genres of an existing user.

        The genres list is replaced wholesale (omitted → empty). Email is
        only changed when supplied.

        Raises:
            ValidationError, NotFoundError, ConflictError, HashingError
        """
        self._validate_credentials(username, password)

        user = await gateway.find_user_by_id(user_id)

        if username != user.username and await gateway.username_taken(username, exclude_id=user_id):
            raise ConflictError(message="Username already exists", context={"username": username})

        user.password_hash = await run_in_threadpool(hash_password, password)
        user.username = username
        user.favorite_genres = list(favorite_genres or [])
        if email is not None:
            user.email = email

        await gateway.save_user(user)
        logger.info("User %d updated", user.id)
        return UserResponse.from_user(user)

    async def delete(self, gateway: PersistenceGateway, user_id: int) -> None:
        user = await gateway.find_user_by_id(user_id)
        await gateway.delete_user(user)


user_service = UserService()
