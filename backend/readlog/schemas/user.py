"""
Readlog Backend - User Schemas
===============================

What:  Request bodies for registration, update and login, and UserResponse.

Password redaction:
    UserResponse has no password field, and `UserResponse.from_user` is the
    only way services turn a User row into API output. No endpoint can
    return a password hash, whatever the caller forgets to do.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from readlog.models import User
from readlog.schemas.record import RecordResponse


class UserCreate(BaseModel):
    """Body of POST /users. Length rules are enforced by UserService."""

    username: str = Field(max_length=255)
    password: str = Field(max_length=1024)
    favorite_genres: Optional[List[str]] = None
    email: Optional[EmailStr] = None


class UserUpdate(BaseModel):
    """Body of PUT /users/{id}: username and password are always replaced."""

    username: str = Field(max_length=255)
    password: str = Field(max_length=1024)
    favorite_genres: Optional[List[str]] = None
    email: Optional[EmailStr] = None


class LoginRequest(BaseModel):
    """Body of POST /auth/login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class UserResponse(BaseModel):
    """A user as returned by the API, with their reading records."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: Optional[str] = None
    favorite_genres: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    records: List[RecordResponse] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            favorite_genres=list(user.favorite_genres or []),
            created_at=user.created_at,
            records=[RecordResponse.model_validate(r) for r in user.records],
        )
