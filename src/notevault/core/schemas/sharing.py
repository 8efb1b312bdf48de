"""
Note sharing schemas.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import PaginationResponse

MIN_SHARE_LIFETIME = timedelta(minutes=5)
MAX_SHARE_LIFETIME = timedelta(days=30)


class ShareRequest(BaseModel):
    """Share link creation; defaults to a 24h, reusable link."""

    expires_at: Optional[datetime] = Field(
        default=None, description="Expiry, between 5 minutes and 30 days from now"
    )
    no_expiry: bool = Field(default=False, description="If true, the link never expires")
    one_time: bool = Field(default=False, description="Whether the link is one-time use")

    @field_validator("expires_at")
    @classmethod
    def validate_expiry_window(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        now = datetime.now(timezone.utc)
        if v < now + MIN_SHARE_LIFETIME or v > now + MAX_SHARE_LIFETIME:
            raise ValueError("Expiry must be between 5 minutes and 30 days from now")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"expires_at": "2025-12-31T23:59:59Z", "no_expiry": False, "one_time": False}
        }
    )


class ShareStatus(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class ShareCriteria(BaseModel):
    """Filters for share listings."""

    note_id: Optional[uuid.UUID] = None
    owner: Optional[str] = None
    query: Optional[str] = None
    status: ShareStatus = ShareStatus.ALL
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class ShareResponse(BaseModel):
    """A share link. ``token`` is the raw value right after creation, the hash afterwards."""

    id: uuid.UUID
    token: str
    note_id: uuid.UUID
    permission: str
    expires_at: Optional[datetime] = None
    one_time: bool
    revoked: bool
    use_count: int
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    expired: bool
    note_title: Optional[str] = None
    note_owner: Optional[str] = None

    @classmethod
    def from_token(cls, share, raw_token: Optional[str] = None) -> "ShareResponse":
        note = share.note
        return cls(
            id=share.id,
            token=raw_token or share.token_hash,
            note_id=share.note_id,
            permission=share.permission,
            expires_at=share.expires_at,
            one_time=share.one_time,
            revoked=share.revoked,
            use_count=share.use_count,
            created_at=share.created_at,
            last_used_at=share.updated_at if share.use_count else None,
            expired=share.is_expired,
            note_title=note.title if note is not None else None,
            note_owner=note.owner if note is not None else None,
        )


class ShareListResponse(PaginationResponse[ShareResponse]):
    """Paginated share links."""
