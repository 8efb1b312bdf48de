"""Write side of notes.

Every public operation commits its own unit of work and evicts the affected
``Note`` cache entries afterwards. Plain methods are the admin variants; the
``*_for_current_user`` ones add the ownership check.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...security.principal import UserPrincipal
from ..cache import NOTE_CACHE, CacheProvider, get_cache_provider
from ..exceptions import (
    InvalidOperationError,
    InvalidPermanentDeleteError,
    NoteNotFoundError,
    UserNotFoundError,
)
from ..logging import get_logger
from ..models.note import Note
from ..models.user import User
from ..repositories.note_repository import NoteRepository
from ..repositories.user_repository import UserRepository
from ..schemas.notes import BulkAction, BulkActionResult, NoteCreate, NotePatch, NoteResponse, NoteUpdate
from .interfaces import INoteCommandService
from .note_authorization import ensure_edit_access
from .tag_service import TagService

logger = get_logger("services.notes")


class NoteCommandService(INoteCommandService):
    """Note command service implementation."""

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[CacheProvider] = None,
        tag_service: Optional[TagService] = None,
    ):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.user_repo = UserRepository(session)
        self.cache = cache or get_cache_provider()
        self.tag_service = tag_service or TagService(session, cache=self.cache)

    async def _evict(self, *note_ids: UUID) -> None:
        await self.cache.clear_cache(NOTE_CACHE, *note_ids)

    async def _load_active(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_active_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def _load_any(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def _persist(self, note: Note, principal: UserPrincipal) -> NoteResponse:
        await self.note_repo.save(note, principal.username)
        await self.session.commit()
        await self._evict(note.id)
        return NoteResponse.from_note(note)

    # --- create / update ---------------------------------------------------------

    async def create(self, request: NoteCreate, principal: UserPrincipal) -> NoteResponse:
        tags = await self.tag_service.resolve_tags(request.tags)
        note = Note(
            title=request.title,
            content=request.content,
            pinned=request.pinned,
            color=request.color,
            owner=principal.username,
            tags=tags,
        )
        response = await self._persist(note, principal)
        logger.info("Note created", extra={"note_id": str(note.id), "owner": note.owner})
        return response

    async def update(self, note_id: UUID, request: NoteUpdate, principal: UserPrincipal) -> NoteResponse:
        return await self._update(note_id, request, principal, check_owner=False)

    async def update_for_current_user(
        self, note_id: UUID, request: NoteUpdate, principal: UserPrincipal
    ) -> NoteResponse:
        return await self._update(note_id, request, principal, check_owner=True)

    async def _update(
        self, note_id: UUID, request: NoteUpdate, principal: UserPrincipal, check_owner: bool
    ) -> NoteResponse:
        note = await self._load_active(note_id)
        if check_owner:
            ensure_edit_access(note, principal)

        # resolve before touching the note so autoflush doesn't write it early
        tags = await self.tag_service.resolve_tags(request.tags)
        note.title = request.title
        note.content = request.content
        note.pinned = request.pinned
        note.color = request.color
        note.tags = tags
        return await self._persist(note, principal)

    async def patch(self, note_id: UUID, request: NotePatch, principal: UserPrincipal) -> NoteResponse:
        return await self._patch(note_id, request, principal, check_owner=False)

    async def patch_for_current_user(
        self, note_id: UUID, request: NotePatch, principal: UserPrincipal
    ) -> NoteResponse:
        return await self._patch(note_id, request, principal, check_owner=True)

    async def _patch(
        self, note_id: UUID, request: NotePatch, principal: UserPrincipal, check_owner: bool
    ) -> NoteResponse:
        note = await self._load_active(note_id)
        if check_owner:
            ensure_edit_access(note, principal)

        tags = await self.tag_service.resolve_tags(request.tags) if request.tags is not None else None
        if request.title is not None:
            note.title = request.title
        if request.content is not None:
            note.content = request.content
        if request.pinned is not None:
            note.pinned = request.pinned
        if request.color is not None:
            note.color = request.color
        if tags is not None:
            note.tags = tags
        return await self._persist(note, principal)

    async def change_owner(self, note_id: UUID, owner: str, principal: UserPrincipal) -> NoteResponse:
        username = User.normalize(owner)
        if not await self.user_repo.exists_by_username(username):
            raise UserNotFoundError(owner)

        note = await self._load_active(note_id)
        note.owner = username
        response = await self._persist(note, principal)
        logger.info("Note owner changed", extra={"note_id": str(note_id), "owner": username})
        return response

    # --- trash -------------------------------------------------------------------

    async def delete(self, note_id: UUID, principal: UserPrincipal) -> None:
        """Soft-delete an active note."""
        if await self.note_repo.soft_delete(note_id, principal.username) == 0:
            raise NoteNotFoundError(note_id)
        await self.session.commit()
        await self._evict(note_id)

    async def delete_for_current_user(self, note_id: UUID, principal: UserPrincipal) -> None:
        note = await self._load_active(note_id)
        ensure_edit_access(note, principal)
        await self.delete(note_id, principal)

    async def restore(self, note_id: UUID, principal: UserPrincipal) -> None:
        """Bring a soft-deleted note back."""
        if await self.note_repo.restore(note_id, principal.username) == 0:
            raise NoteNotFoundError(note_id)
        await self.session.commit()
        await self._evict(note_id)

    async def restore_for_current_user(self, note_id: UUID, principal: UserPrincipal) -> None:
        note = await self._load_any(note_id)
        ensure_edit_access(note, principal)
        if not note.deleted:
            raise NoteNotFoundError(note_id)
        await self.restore(note_id, principal)

    async def delete_permanently(self, note_id: UUID, principal: UserPrincipal) -> None:
        await self._delete_permanently(note_id, principal, check_owner=False)

    async def delete_permanently_for_current_user(self, note_id: UUID, principal: UserPrincipal) -> None:
        await self._delete_permanently(note_id, principal, check_owner=True)

    async def _delete_permanently(self, note_id: UUID, principal: UserPrincipal, check_owner: bool) -> None:
        note = await self._load_any(note_id)
        if check_owner:
            ensure_edit_access(note, principal)
        if not note.deleted:
            raise InvalidPermanentDeleteError(note_id)

        await self.note_repo.delete(note, principal.username)
        await self.session.commit()
        await self._evict(note_id)
        self.tag_service.cleanup_orphan_tags_async()
        logger.info("Note permanently deleted", extra={"note_id": str(note_id)})

    async def empty_trash(self, principal: UserPrincipal) -> int:
        return await self._empty_trash(owner=None)

    async def empty_trash_for_current_user(self, principal: UserPrincipal) -> int:
        return await self._empty_trash(owner=principal.username)

    async def _empty_trash(self, owner: Optional[str]) -> int:
        purged = await self.note_repo.purge_deleted(owner)
        await self.session.commit()
        if purged:
            await self.cache.clear_caches(NOTE_CACHE)
            self.tag_service.cleanup_orphan_tags_async()
        logger.info("Trash emptied", extra={"owner": owner, "purged": purged})
        return purged

    # --- bulk --------------------------------------------------------------------

    async def bulk(
        self, action: BulkAction, note_ids: Iterable[UUID], principal: UserPrincipal
    ) -> BulkActionResult:
        return await self._bulk(action, note_ids, principal, owner=None)

    async def bulk_for_current_user(
        self, action: BulkAction, note_ids: Iterable[UUID], principal: UserPrincipal
    ) -> BulkActionResult:
        return await self._bulk(action, note_ids, principal, owner=principal.username)

    async def _bulk(
        self,
        action: BulkAction,
        note_ids: Iterable[UUID],
        principal: UserPrincipal,
        owner: Optional[str],
    ) -> BulkActionResult:
        ids = list(dict.fromkeys(note_ids or ()))
        if not ids:
            return BulkActionResult(processed_count=0, failed_ids=[])
        if len(ids) > get_settings().bulk_max_ids:
            raise InvalidOperationError(f"At most {get_settings().bulk_max_ids} ids per bulk action")

        notes = await self.note_repo.find_by_ids(ids, owner=owner)
        found = {note.id for note in notes}
        failed: List[UUID] = [note_id for note_id in ids if note_id not in found]

        # DELETE_SOFT works on active notes, the other two on trashed ones
        wants_deleted = action != BulkAction.DELETE_SOFT
        eligible = [note.id for note in notes if note.deleted == wants_deleted]
        failed += [note.id for note in notes if note.deleted != wants_deleted]

        processed = 0
        if eligible:
            if action == BulkAction.DELETE_SOFT:
                processed = await self.note_repo.soft_delete_by_ids(eligible, principal.username)
            elif action == BulkAction.RESTORE:
                processed = await self.note_repo.restore_by_ids(eligible, principal.username)
            else:
                processed = await self.note_repo.purge_by_ids(eligible)
            await self.session.commit()

        if processed > 0:
            await self._evict(*eligible)
            if action == BulkAction.DELETE_FOREVER:
                self.tag_service.cleanup_orphan_tags_async()

        logger.info(
            "Bulk note action",
            extra={"action": action.value, "processed": processed, "failed": len(failed)},
        )
        return BulkActionResult(processed_count=processed, failed_ids=sorted(failed, key=str))
