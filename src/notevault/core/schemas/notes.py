"""
Note management schemas.

These schemas define the API contracts for note CRUD, trash, bulk actions,
revisions and tag suggestions.
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import PaginationResponse

HEX_COLOR_PATTERN = re.compile(r"^#?[0-9A-Fa-f]{6}$")
TAG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MAX_TAGS = 5


def _validate_color(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not HEX_COLOR_PATTERN.match(value):
        raise ValueError("Color must be a hex value like #2563eb")
    return value if value.startswith("#") else f"#{value}"


def _validate_tags(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    if len(value) > MAX_TAGS:
        raise ValueError(f"At most {MAX_TAGS} tags are allowed")
    for tag in value:
        trimmed = tag.strip()
        if not 1 <= len(trimmed) <= 30:
            raise ValueError("Tags must be between 1 and 30 characters")
        if not TAG_PATTERN.match(trimmed):
            raise ValueError("Tags can only contain letters, numbers, hyphens, and underscores")
    return value


class NoteCreate(BaseModel):
    """Note creation request schema."""

    title: str = Field(min_length=3, max_length=255, description="Note title")
    content: str = Field(min_length=10, max_length=1024, description="Note content")
    pinned: bool = Field(default=False, description="Whether the note is pinned")
    color: Optional[str] = Field(default=None, description="Optional color hex (e.g. #2563eb)")
    tags: Optional[List[str]] = Field(default=None, description="Tags attached to the note")

    check_color = field_validator("color")(_validate_color)
    check_tags = field_validator("tags")(_validate_tags)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be blank")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "My first note",
                "content": "Hello auditing world",
                "pinned": False,
                "color": "#2563eb",
                "tags": ["audit", "sqlalchemy"],
            }
        }
    )


class NoteUpdate(NoteCreate):
    """Full replacement of a note. Omitting ``tags`` clears them."""


class NotePatch(BaseModel):
    """Partial update; only provided fields change."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    content: Optional[str] = Field(default=None, min_length=10, max_length=1024)
    pinned: Optional[bool] = None
    color: Optional[str] = None
    tags: Optional[List[str]] = Field(default=None, description="Replaces tags when present")

    check_color = field_validator("color")(_validate_color)
    check_tags = field_validator("tags")(_validate_tags)

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Updated note title", "pinned": True}}
    )


class OwnerChangeRequest(BaseModel):
    owner: str = Field(min_length=3, max_length=100, description="Username of the new owner")


class BulkAction(str, Enum):
    DELETE_SOFT = "DELETE_SOFT"
    RESTORE = "RESTORE"
    DELETE_FOREVER = "DELETE_FOREVER"


class BulkActionRequest(BaseModel):
    action: BulkAction
    ids: Set[uuid.UUID] = Field(min_length=1, max_length=100, description="Note ids (max 100)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"action": "DELETE_SOFT", "ids": ["3f1c7c1e-0d7e-4a7b-9d0e-2f4b8f1a9c11"]}
        }
    )


class BulkActionResult(BaseModel):
    processed_count: int
    failed_ids: List[uuid.UUID] = Field(default_factory=list)


class NoteCriteria(BaseModel):
    """Filters for note listings; empty values are ignored."""

    query: Optional[str] = None
    tags: Optional[List[str]] = None
    color: Optional[str] = None
    pinned: Optional[bool] = None
    owner: Optional[str] = None


class NoteResponse(BaseModel):
    """Note as returned by the API."""

    id: uuid.UUID
    title: str
    content: str
    pinned: bool
    color: Optional[str] = None
    owner: str
    tags: List[str] = Field(default_factory=list)
    version: Optional[int] = None
    deleted: bool = False
    deleted_by: Optional[str] = None
    deleted_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_note(cls, note) -> "NoteResponse":
        return cls.model_validate(note.snapshot())


class NoteListResponse(PaginationResponse[NoteResponse]):
    """Paginated notes."""


class NoteRevisionResponse(BaseModel):
    revision: int
    revision_type: str = Field(description="ADD, MOD or DEL")
    revision_date: datetime
    auditor: Optional[str] = None
    note: Optional[NoteResponse] = None


class NoteRevisionListResponse(PaginationResponse[NoteRevisionResponse]):
    """Paginated revisions, newest first."""


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class TagListResponse(PaginationResponse[TagResponse]):
    """Paginated tags."""
