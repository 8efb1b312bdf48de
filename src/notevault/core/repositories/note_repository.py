"""Note repository for database operations."""

from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import ColumnElement, delete, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.base import utcnow
from ..models.note import Note
from ..models.revision import REVISION_ADD, REVISION_DEL, REVISION_MOD
from ..models.share_token import NoteShareToken
from ..models.tag import note_tags
from .pagination import PageRequest, fetch_page, parse_sort
from .revision_repository import RevisionRepository

SORTABLE_COLUMNS = {
    "title": Note.title,
    "created_at": Note.created_at,
    "updated_at": Note.updated_at,
    "color": Note.color,
    "owner": Note.owner,
    "pinned": Note.pinned,
}

# bulk statements skip the ORM identity map; reads re-populate instead
_NO_SYNC = {"synchronize_session": False}


class NoteRepository:
    """Repository for note database operations.

    Methods flush but never commit; the calling service owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.revisions = RevisionRepository(session)

    def _select(self):
        return (
            select(Note)
            .options(selectinload(Note.tags))
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, note_id: UUID) -> Optional[Note]:
        """Note by id, trashed or not."""
        result = await self.session.execute(self._select().where(Note.id == note_id))
        return result.scalar_one_or_none()

    async def get_active_by_id(self, note_id: UUID) -> Optional[Note]:
        result = await self.session.execute(
            self._select().where(Note.id == note_id, Note.deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def find_by_ids(self, note_ids: Iterable[UUID], owner: Optional[str] = None) -> List[Note]:
        stmt = self._select().where(Note.id.in_(list(note_ids)))
        if owner is not None:
            stmt = stmt.where(Note.owner == owner)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_page(
        self, where: ColumnElement[bool], page: PageRequest, prioritize_pinned: bool = True
    ) -> Tuple[List[Note], int]:
        """Filtered page; pinned notes first, then the requested or default order."""
        order_by = [Note.pinned.desc()] if prioritize_pinned else []
        order_by += parse_sort(page.sort, SORTABLE_COLUMNS) or [Note.created_at.desc()]
        stmt = self._select().where(where).order_by(*order_by, Note.id)
        return await fetch_page(self.session, stmt, page)

    async def save(self, note: Note, auditor: Optional[str]) -> Note:
        """Insert or update a note and append a revision."""
        is_new = inspect(note).transient
        if is_new:
            note.created_by = auditor
            self.session.add(note)
        else:
            note.updated_at = utcnow()
        note.last_modified_by = auditor

        await self.session.flush()
        await self.revisions.record(note, REVISION_ADD if is_new else REVISION_MOD, auditor)
        return note

    async def delete(self, note: Note, auditor: Optional[str]) -> None:
        """Remove a note for good, keeping a final revision."""
        await self.revisions.record(note, REVISION_DEL, auditor)
        await self.purge_by_ids([note.id])

    async def soft_delete(self, note_id: UUID, auditor: Optional[str]) -> int:
        return await self.soft_delete_by_ids([note_id], auditor)

    async def soft_delete_by_ids(self, note_ids: Sequence[UUID], auditor: Optional[str]) -> int:
        stmt = (
            update(Note)
            .where(Note.id.in_(list(note_ids)), Note.deleted.is_(False))
            .values(
                deleted=True,
                deleted_by=auditor,
                deleted_at=utcnow(),
                last_modified_by=auditor,
            )
            .execution_options(**_NO_SYNC)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def restore(self, note_id: UUID, auditor: Optional[str]) -> int:
        return await self.restore_by_ids([note_id], auditor)

    async def restore_by_ids(self, note_ids: Sequence[UUID], auditor: Optional[str]) -> int:
        stmt = (
            update(Note)
            .where(Note.id.in_(list(note_ids)), Note.deleted.is_(True))
            .values(deleted=False, deleted_by=None, deleted_at=None, last_modified_by=auditor)
            .execution_options(**_NO_SYNC)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def purge_by_ids(self, note_ids: Sequence[UUID]) -> int:
        """Hard-delete notes together with their tag links and share tokens."""
        ids = list(note_ids)
        if not ids:
            return 0
        await self.session.execute(
            delete(NoteShareToken).where(NoteShareToken.note_id.in_(ids)).execution_options(**_NO_SYNC)
        )
        await self.session.execute(delete(note_tags).where(note_tags.c.note_id.in_(ids)))
        result = await self.session.execute(
            delete(Note).where(Note.id.in_(ids)).execution_options(**_NO_SYNC)
        )
        return result.rowcount

    async def purge_deleted(self, owner: Optional[str] = None) -> int:
        """Empty the trash, optionally only one owner's."""
        stmt = select(Note.id).where(Note.deleted.is_(True))
        if owner is not None:
            stmt = stmt.where(Note.owner == owner)
        ids = list((await self.session.execute(stmt)).scalars().all())
        return await self.purge_by_ids(ids)
