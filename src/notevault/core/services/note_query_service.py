"""Read side of notes: listings, trash and single-note lookups."""

from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...security.principal import UserPrincipal
from ..cache import NOTE_CACHE, CacheProvider, get_cache_provider
from ..exceptions import NoteNotFoundError
from ..repositories.note_repository import NoteRepository
from ..repositories.note_specifications import from_criteria
from ..repositories.pagination import PageRequest
from ..schemas.notes import NoteCriteria, NoteListResponse, NoteResponse
from .interfaces import INoteQueryService
from .note_authorization import ensure_read_access


class NoteQueryService(INoteQueryService):
    """Note query service implementation."""

    def __init__(self, session: AsyncSession, cache: Optional[CacheProvider] = None):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.cache = cache or get_cache_provider()

    async def _page(self, criteria: Optional[NoteCriteria], page: PageRequest, deleted: bool) -> NoteListResponse:
        notes, total = await self.note_repo.find_page(from_criteria(criteria, deleted=deleted), page)
        return NoteListResponse.create(
            items=[NoteResponse.from_note(note) for note in notes],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )

    @staticmethod
    def _scoped(criteria: Optional[NoteCriteria], principal: UserPrincipal) -> NoteCriteria:
        return (criteria or NoteCriteria()).model_copy(update={"owner": principal.username})

    async def find_all(self, criteria: Optional[NoteCriteria], page: PageRequest) -> NoteListResponse:
        return await self._page(criteria, page, deleted=False)

    async def find_all_for_current_user(
        self, principal: UserPrincipal, criteria: Optional[NoteCriteria], page: PageRequest
    ) -> NoteListResponse:
        return await self._page(self._scoped(criteria, principal), page, deleted=False)

    async def find_deleted(self, criteria: Optional[NoteCriteria], page: PageRequest) -> NoteListResponse:
        return await self._page(criteria, page, deleted=True)

    async def find_deleted_for_current_user(
        self, principal: UserPrincipal, criteria: Optional[NoteCriteria], page: PageRequest
    ) -> NoteListResponse:
        return await self._page(self._scoped(criteria, principal), page, deleted=True)

    async def find_by_id(self, note_id: UUID) -> NoteResponse:
        """Active note by id, served from cache when possible."""
        cached = await self.cache.get(NOTE_CACHE, note_id)
        if cached is not None:
            response = NoteResponse.model_validate(cached)
            if not response.deleted:
                return response

        note = await self.note_repo.get_active_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)

        response = NoteResponse.from_note(note)
        await self.cache.put(NOTE_CACHE, note_id, response.model_dump(mode="json"))
        return response

    async def find_by_id_for_current_user(self, note_id: UUID, principal: UserPrincipal) -> NoteResponse:
        response = await self.find_by_id(note_id)
        ensure_read_access(response, principal)
        return response
