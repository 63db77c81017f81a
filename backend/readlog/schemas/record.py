"""
Readlog Backend - Reading Record Schemas
=========================================

What:  Request bodies and the response shape for reading records.
How:   The wire format is camelCase (userID, currentPage, totalPages, ...);
       request models accept either the camelCase alias or the field name,
       and RecordResponse serializes with camelCase aliases.

Shape rules live here (types, 0 <= pages <= 2^31-1, string lengths).
Business rules (required ISBN/title, currentPage <= totalPages, uniqueness)
live in RecordService so they produce ValidationError / ConflictError.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

INT32_MAX = 2_147_483_647


class RecordCreate(BaseModel):
    """Body of POST /records."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[int] = Field(default=None, alias="userID", description="Owning user id")
    isbn: str = Field(default="", max_length=20, description="Book ISBN")
    title: str = Field(default="", max_length=255)
    author: Optional[str] = Field(default=None, max_length=255)
    cover: Optional[str] = Field(default=None, max_length=512, description="Cover image URL")
    genre: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default="reading", max_length=50, description="e.g. reading, finished, on-hold")
    current_page: int = Field(default=0, ge=0, le=INT32_MAX, alias="currentPage")
    total_pages: int = Field(default=0, ge=0, le=INT32_MAX, alias="totalPages")


class RecordUpdate(BaseModel):
    """Body of PUT /records. An omitted status keeps the stored one."""

    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = Field(default=None, max_length=50)
    current_page: int = Field(ge=0, le=INT32_MAX, alias="currentPage")


class RecordResponse(BaseModel):
    """A reading record as returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(serialization_alias="userID")
    isbn: str
    title: str
    author: Optional[str] = None
    cover: Optional[str] = None
    genre: Optional[str] = None
    status: str
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    date_added: datetime = Field(serialization_alias="dateAdded")
    started_at: Optional[datetime] = Field(default=None, serialization_alias="startedAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")
    stopped_at: Optional[datetime] = Field(default=None, serialization_alias="stoppedAt")
    finished_at: Optional[datetime] = Field(default=None, serialization_alias="finishedAt")
