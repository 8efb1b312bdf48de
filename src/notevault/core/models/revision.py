# Note history
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, utcnow
from .types import GUID

REVISION_ADD = "ADD"
REVISION_MOD = "MOD"
REVISION_DEL = "DEL"


class NoteRevision(BaseModel):
    """Snapshot of a note taken on every insert, update and hard delete.

    ``note_id`` is deliberately not a foreign key: history outlives the note.
    """

    __tablename__ = "note_revisions"

    note_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False)
    revision_type: Mapped[str] = mapped_column(String(3), nullable=False)
    revision_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    auditor: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("note_id", "revision", name="uq_note_revisions_note_revision"),
        Index("idx_note_revisions_note_id", "note_id"),
    )

    def __repr__(self) -> str:
        return f"<NoteRevision(note_id={self.note_id}, revision={self.revision}, type={self.revision_type})>"
