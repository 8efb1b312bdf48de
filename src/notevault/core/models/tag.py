# Tag model and the note <-> tag association table
from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Table, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel
from .types import GUID


note_tags = Table(
    "note_tags",
    BaseModel.metadata,
    Column("note_id", GUID(), ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", GUID(), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Tag(BaseModel):
    """Tag for categorizing notes. Names are stored trimmed and lower-case."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_tags_name"),
        CheckConstraint("length(name) <= 50", name="ck_tags_name_len"),
    )

    def __repr__(self) -> str:
        return f"<Tag(name='{self.name}')>"

    @classmethod
    def normalize_name(cls, name: str) -> str:
        """Trim and lower-case a tag name."""
        return name.strip().lower()


# names always go in normalized, whatever path created the tag
@event.listens_for(Tag, "before_insert", propagate=True)
def _normalize_tag_name_before_insert(mapper, connection, target: Tag):
    target.name = Tag.normalize_name(target.name)


@event.listens_for(Tag, "before_update", propagate=True)
def _normalize_tag_name_before_update(mapper, connection, target: Tag):
    target.name = Tag.normalize_name(target.name)
