# Note model
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.orm import attributes as orm_attributes

from .base import AuditMixin, BaseModel, SoftDeleteMixin, as_utc
from .tag import note_tags

if TYPE_CHECKING:
    from .tag import Tag


class Note(AuditMixin, SoftDeleteMixin, BaseModel):
    """A user's note. ``owner`` holds the owning username."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    pinned: Mapped[bool] = mapped_column(default=False, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)
    owner: Mapped[str] = mapped_column(String(50), nullable=False)

    # optimistic locking
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary=note_tags,
        lazy="selectin",
        order_by="Tag.name",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_notes_owner_deleted", "owner", "deleted"),
        Index("idx_notes_created_at", "created_at"),
        CheckConstraint("length(title) <= 255", name="ck_notes_title_len"),
    )

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', owner={self.owner})>"

    @property
    def tag_names(self) -> List[str]:
        return sorted(tag.name for tag in self.tags)

    def snapshot(self) -> Dict[str, Any]:
        """Field values kept in revision history."""
        def iso(value):
            value = as_utc(value)
            return value.isoformat() if value else None

        return {
            "id": str(self.id),
            "title": self.title,
            "content": self.content,
            "pinned": self.pinned,
            "color": self.color,
            "owner": self.owner,
            "tags": self.tag_names,
            "version": self.version,
            "deleted": self.deleted,
            "deleted_by": self.deleted_by,
            "deleted_at": iso(self.deleted_at),
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "last_modified_by": self.last_modified_by,
            "updated_at": iso(self.updated_at),
        }


# new notes start with a loaded, empty tag collection so async code never lazy-loads it
@event.listens_for(Note, "init", propagate=True)
def _init_note_collections(target, args, kwargs):
    if "tags" not in kwargs:
        orm_attributes.set_committed_value(target, "tags", [])
