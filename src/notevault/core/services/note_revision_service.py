"""Revision history of notes."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...security.principal import UserPrincipal
from ..cache import NOTE_CACHE, CacheProvider, get_cache_provider
from ..exceptions import NoteNotFoundError, RevisionNotFoundError
from ..logging import get_logger
from ..models.note import Note
from ..models.revision import NoteRevision
from ..repositories.note_repository import NoteRepository
from ..repositories.pagination import PageRequest
from ..repositories.revision_repository import RevisionRepository
from ..schemas.notes import NoteResponse, NoteRevisionListResponse, NoteRevisionResponse
from .interfaces import INoteRevisionService
from .note_authorization import ensure_edit_access, ensure_read_access
from .tag_service import TagService

logger = get_logger("services.revisions")


def to_revision_response(revision: NoteRevision) -> NoteRevisionResponse:
    return NoteRevisionResponse(
        revision=revision.revision,
        revision_type=revision.revision_type,
        revision_date=revision.revision_date,
        auditor=revision.auditor,
        note=NoteResponse.model_validate(revision.snapshot) if revision.snapshot else None,
    )


class NoteRevisionService(INoteRevisionService):
    """Browse and roll back note history."""

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[CacheProvider] = None,
        tag_service: Optional[TagService] = None,
    ):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.revision_repo = RevisionRepository(session)
        self.cache = cache or get_cache_provider()
        self.tag_service = tag_service or TagService(session, cache=self.cache)

    async def _load(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def _revision(self, note_id: UUID, revision: int) -> NoteRevision:
        entry = await self.revision_repo.get(note_id, revision)
        if entry is None:
            raise RevisionNotFoundError(note_id, revision)
        return entry

    async def find_revisions(self, note_id: UUID, page: PageRequest) -> NoteRevisionListResponse:
        await self._load(note_id)
        return await self._page(note_id, page)

    async def find_revisions_for_current_user(
        self, note_id: UUID, principal: UserPrincipal, page: PageRequest
    ) -> NoteRevisionListResponse:
        ensure_read_access(await self._load(note_id), principal)
        return await self._page(note_id, page)

    async def _page(self, note_id: UUID, page: PageRequest) -> NoteRevisionListResponse:
        revisions, total = await self.revision_repo.find_page(note_id, page)
        return NoteRevisionListResponse.create(
            items=[to_revision_response(revision) for revision in revisions],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )

    async def find_revision(self, note_id: UUID, revision: int) -> NoteRevisionResponse:
        await self._load(note_id)
        return to_revision_response(await self._revision(note_id, revision))

    async def find_revision_for_current_user(
        self, note_id: UUID, revision: int, principal: UserPrincipal
    ) -> NoteRevisionResponse:
        ensure_read_access(await self._load(note_id), principal)
        return to_revision_response(await self._revision(note_id, revision))

    async def restore_revision(self, note_id: UUID, revision: int, principal: UserPrincipal) -> NoteResponse:
        return await self._restore(note_id, revision, principal, check_owner=False)

    async def restore_revision_for_current_user(
        self, note_id: UUID, revision: int, principal: UserPrincipal
    ) -> NoteResponse:
        return await self._restore(note_id, revision, principal, check_owner=True)

    async def _restore(
        self, note_id: UUID, revision: int, principal: UserPrincipal, check_owner: bool
    ) -> NoteResponse:
        note = await self._load(note_id)
        if check_owner:
            ensure_edit_access(note, principal)
        snapshot = (await self._revision(note_id, revision)).snapshot

        tags = await self.tag_service.resolve_tags(snapshot.get("tags"))
        note.title = snapshot["title"]
        note.content = snapshot["content"]
        note.pinned = bool(snapshot.get("pinned"))
        note.color = snapshot.get("color")
        note.owner = snapshot.get("owner") or note.owner
        note.tags = tags
        note.clear_deleted()

        await self.note_repo.save(note, principal.username)
        await self.session.commit()
        await self.cache.clear_cache(NOTE_CACHE, note_id)
        logger.info("Note restored to revision", extra={"note_id": str(note_id), "revision": revision})
        return NoteResponse.from_note(note)
