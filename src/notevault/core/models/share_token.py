# Share links granting read access to a single note
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, as_utc
from .types import GUID

if TYPE_CHECKING:
    from .note import Note

PERMISSION_READ = "READ"


class NoteShareToken(BaseModel):
    """Hashed bearer token for a note. ``updated_at`` doubles as last-used time."""

    __tablename__ = "note_share_tokens"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    permission: Mapped[str] = mapped_column(String(20), default=PERMISSION_READ, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    one_time: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    note: Mapped["Note"] = relationship("Note", lazy="raise")

    __table_args__ = (
        Index("idx_share_tokens_note_id", "note_id"),
        Index("idx_share_tokens_created_at", "created_at"),
    )

    # raw value, only set right after creation
    raw_token = None

    def __repr__(self) -> str:
        return f"<NoteShareToken(note_id={self.note_id}, revoked={self.revoked})>"

    @property
    def is_expired(self) -> bool:
        expires_at = as_utc(self.expires_at)
        return expires_at is not None and datetime.now(timezone.utc) >= expires_at
