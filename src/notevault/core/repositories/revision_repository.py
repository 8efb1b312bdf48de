"""Note revision history."""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note
from ..models.revision import NoteRevision
from .pagination import PageRequest, fetch_page


class RevisionRepository:
    """Append-only store of note snapshots."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(self, note: Note, revision_type: str, auditor: Optional[str]) -> NoteRevision:
        latest = await self.session.execute(
            select(func.coalesce(func.max(NoteRevision.revision), 0)).where(
                NoteRevision.note_id == note.id
            )
        )
        revision = NoteRevision(
            note_id=note.id,
            revision=latest.scalar_one() + 1,
            revision_type=revision_type,
            auditor=auditor,
            snapshot=note.snapshot(),
        )
        self.session.add(revision)
        await self.session.flush()
        return revision

    async def find_page(self, note_id: UUID, page: PageRequest) -> Tuple[List[NoteRevision], int]:
        stmt = (
            select(NoteRevision)
            .where(NoteRevision.note_id == note_id)
            .order_by(NoteRevision.revision.desc())
        )
        return await fetch_page(self.session, stmt, page)

    async def get(self, note_id: UUID, revision: int) -> Optional[NoteRevision]:
        result = await self.session.execute(
            select(NoteRevision).where(
                NoteRevision.note_id == note_id, NoteRevision.revision == revision
            )
        )
        return result.scalar_one_or_none()
