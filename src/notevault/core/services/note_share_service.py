"""Share links: issue, consume, revoke and list."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ... import database
from ...config import get_settings
from ...security.principal import UserPrincipal
from ...security.tokens import generate_token, hash_token
from ..cache import SHARE_TOKEN_CACHE, CacheProvider, get_cache_provider
from ..exceptions import InvalidBearerTokenError, NoteNotFoundError, ShareTokenNotFoundError
from ..logging import get_logger
from ..models.note import Note
from ..models.share_token import PERMISSION_READ, NoteShareToken
from ..repositories.note_repository import NoteRepository
from ..repositories.pagination import PageRequest
from ..repositories.share_token_repository import ShareTokenRepository
from ..schemas.notes import NoteResponse
from ..schemas.sharing import ShareCriteria, ShareListResponse, ShareRequest, ShareResponse
from .interfaces import INoteShareService
from .note_authorization import ensure_edit_access, ensure_read_access

logger = get_logger("services.sharing")


class NoteShareService(INoteShareService):
    """Note share service implementation."""

    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[CacheProvider] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.share_repo = ShareTokenRepository(session)
        self.cache = cache or get_cache_provider()
        self._session_factory = session_factory

    @property
    def session_factory(self) -> Callable[[], AsyncSession]:
        return self._session_factory or database.AsyncSessionLocal

    async def _load_note(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def _load_share(self, token_id: UUID) -> NoteShareToken:
        share = await self.share_repo.get_by_id(token_id)
        if share is None:
            raise ShareTokenNotFoundError(token_id)
        return share

    @staticmethod
    def _expiry(request: ShareRequest) -> Optional[datetime]:
        if request.no_expiry:
            return None
        if request.expires_at is not None:
            return request.expires_at
        hours = get_settings().share_token_default_ttl_hours
        return datetime.now(timezone.utc) + timedelta(hours=hours)

    # --- create --------------------------------------------------------------------

    async def create(self, note_id: UUID, request: ShareRequest, principal: UserPrincipal) -> ShareResponse:
        return await self._create(note_id, request, principal, check_owner=False)

    async def create_for_current_user(
        self, note_id: UUID, request: ShareRequest, principal: UserPrincipal
    ) -> ShareResponse:
        return await self._create(note_id, request, principal, check_owner=True)

    async def _create(
        self, note_id: UUID, request: ShareRequest, principal: UserPrincipal, check_owner: bool
    ) -> ShareResponse:
        note = await self._load_note(note_id)
        if check_owner:
            ensure_edit_access(note, principal)
        if note.deleted:
            raise InvalidBearerTokenError("Cannot share a deleted note")

        raw_token = generate_token(32)
        share = NoteShareToken(
            note=note,
            permission=PERMISSION_READ,
            token_hash=hash_token(raw_token),
            expires_at=self._expiry(request),
            one_time=request.one_time,
            use_count=0,
            revoked=False,
        )
        await self.share_repo.add(share)
        await self.session.commit()

        logger.info(
            "Share link created",
            extra={"note_id": str(note_id), "share_id": str(share.id), "one_time": share.one_time},
        )
        return ShareResponse.from_token(share, raw_token=raw_token)

    # --- consume -------------------------------------------------------------------

    async def validate_and_consume(self, raw_token: str) -> NoteResponse:
        """Count one use of a share link and return its note.

        Runs in its own transaction and commits before returning, so a one-time
        link is spent even if the caller fails afterwards.
        """
        if not raw_token or not raw_token.strip():
            raise InvalidBearerTokenError("Invalid share token")
        token_hash = hash_token(raw_token.strip())

        async with self.session_factory() as session:
            repo = ShareTokenRepository(session)
            share = await repo.get_active_by_hash(token_hash, lock=True)
            if share is None:
                raise InvalidBearerTokenError("Invalid share token")
            if share.is_expired:
                raise InvalidBearerTokenError("Share token expired")
            if share.note.deleted:
                raise InvalidBearerTokenError("Note is not accessible")

            # a concurrent consumer may have revoked a one-time link in between
            if await repo.consume(share.id, share.one_time) == 0:
                raise InvalidBearerTokenError("Invalid share token")
            response = NoteResponse.from_note(share.note)
            await session.commit()

        await self.cache.clear_cache(SHARE_TOKEN_CACHE, share.id)
        logger.info("Share link used", extra={"share_id": str(share.id), "note_id": str(share.note_id)})
        return response

    # --- revoke --------------------------------------------------------------------

    async def revoke(self, token_id: UUID, principal: UserPrincipal) -> None:
        await self._revoke(token_id, principal, check_owner=False)

    async def revoke_for_current_user(self, token_id: UUID, principal: UserPrincipal) -> None:
        await self._revoke(token_id, principal, check_owner=True)

    async def _revoke(self, token_id: UUID, principal: UserPrincipal, check_owner: bool) -> None:
        share = await self._load_share(token_id)
        if check_owner:
            ensure_edit_access(share.note, principal)
        if share.revoked:
            return

        await self.share_repo.revoke(token_id)
        await self.session.commit()
        await self.cache.clear_cache(SHARE_TOKEN_CACHE, token_id)
        logger.info("Share link revoked", extra={"share_id": str(token_id)})

    # --- listings ------------------------------------------------------------------

    async def _page(self, criteria: ShareCriteria, page: PageRequest) -> ShareListResponse:
        shares, total = await self.share_repo.find_page(criteria, page)
        return ShareListResponse.create(
            items=[ShareResponse.from_token(share) for share in shares],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )

    async def list_for_note(
        self, note_id: UUID, criteria: Optional[ShareCriteria], page: PageRequest
    ) -> ShareListResponse:
        await self._load_note(note_id)
        criteria = (criteria or ShareCriteria()).model_copy(update={"note_id": note_id})
        return await self._page(criteria, page)

    async def list_for_note_for_current_user(
        self,
        note_id: UUID,
        principal: UserPrincipal,
        criteria: Optional[ShareCriteria],
        page: PageRequest,
    ) -> ShareListResponse:
        ensure_read_access(await self._load_note(note_id), principal)
        criteria = (criteria or ShareCriteria()).model_copy(update={"note_id": note_id})
        return await self._page(criteria, page)

    async def list_all_for_current_user(
        self, principal: UserPrincipal, criteria: Optional[ShareCriteria], page: PageRequest
    ) -> ShareListResponse:
        criteria = (criteria or ShareCriteria()).model_copy(update={"owner": principal.username})
        return await self._page(criteria, page)

    async def list_all_for_admin(
        self, criteria: Optional[ShareCriteria], page: PageRequest
    ) -> ShareListResponse:
        return await self._page(criteria or ShareCriteria(), page)
