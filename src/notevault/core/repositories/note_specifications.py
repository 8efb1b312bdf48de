"""Composable filters for note queries.

Each builder returns a SQL condition, or ``None`` when its input is empty so
that ``all_of`` can simply skip it.
"""

from typing import Iterable, List, Optional

from sqlalchemy import ColumnElement, and_, func, or_, select, true

from ..models.note import Note
from ..models.tag import Tag, note_tags
from ..schemas.notes import NoteCriteria


def is_not_deleted() -> ColumnElement[bool]:
    return Note.deleted.is_(False)


def is_deleted() -> ColumnElement[bool]:
    return Note.deleted.is_(True)


def search(query: Optional[str]) -> Optional[ColumnElement[bool]]:
    """Case-insensitive substring match over title or content."""
    if not query or not query.strip():
        return None
    term = query.strip().lower()
    return or_(
        func.lower(Note.title).contains(term, autoescape=True),
        func.lower(Note.content).contains(term, autoescape=True),
    )


def has_color(color: Optional[str]) -> Optional[ColumnElement[bool]]:
    if not color or not color.strip():
        return None
    return func.lower(Note.color) == color.strip().lower()


def is_pinned(pinned: Optional[bool]) -> Optional[ColumnElement[bool]]:
    if pinned is None:
        return None
    return Note.pinned.is_(pinned)


def has_tags(names: Optional[Iterable[str]]) -> Optional[ColumnElement[bool]]:
    """Notes carrying at least one of the given tags."""
    normalized = list(dict.fromkeys(
        Tag.normalize_name(name) for name in names or () if name and name.strip()
    ))
    if not normalized:
        return None
    tagged = (
        select(note_tags.c.note_id)
        .join(Tag, Tag.id == note_tags.c.tag_id)
        .where(Tag.name.in_(normalized))
    )
    return Note.id.in_(tagged)


def owned_by(owner: Optional[str]) -> Optional[ColumnElement[bool]]:
    if not owner or not owner.strip():
        return None
    return func.lower(Note.owner) == owner.strip().lower()


def all_of(*conditions: Optional[ColumnElement[bool]]) -> ColumnElement[bool]:
    """AND of the non-empty conditions; ``true()`` when there are none."""
    present: List[ColumnElement[bool]] = [c for c in conditions if c is not None]
    return and_(true(), *present)


def from_criteria(criteria: Optional[NoteCriteria], deleted: bool = False) -> ColumnElement[bool]:
    criteria = criteria or NoteCriteria()
    return all_of(
        is_deleted() if deleted else is_not_deleted(),
        search(criteria.query),
        has_color(criteria.color),
        is_pinned(criteria.pinned),
        has_tags(criteria.tags),
        owned_by(criteria.owner),
    )
