"""Share token repository for database operations."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import ColumnElement, and_, delete, func, or_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.note import Note
from ..models.share_token import NoteShareToken
from ..schemas.sharing import ShareCriteria, ShareStatus
from .pagination import PageRequest, fetch_page, parse_sort

SORTABLE_COLUMNS = {
    "created_at": NoteShareToken.created_at,
    "expires_at": NoteShareToken.expires_at,
    "use_count": NoteShareToken.use_count,
}


def _status_filter(status: ShareStatus) -> Optional[ColumnElement[bool]]:
    now = datetime.now(timezone.utc)
    not_expired = or_(NoteShareToken.expires_at.is_(None), NoteShareToken.expires_at > now)
    if status == ShareStatus.REVOKED:
        return NoteShareToken.revoked.is_(True)
    if status == ShareStatus.EXPIRED:
        return and_(NoteShareToken.expires_at.is_not(None), NoteShareToken.expires_at <= now)
    if status == ShareStatus.ACTIVE:
        return and_(NoteShareToken.revoked.is_(False), not_expired)
    return None


def criteria_filter(criteria: ShareCriteria) -> ColumnElement[bool]:
    conditions = []
    if criteria.note_id is not None:
        conditions.append(NoteShareToken.note_id == criteria.note_id)
    if criteria.owner and criteria.owner.strip():
        conditions.append(func.lower(Note.owner) == criteria.owner.strip().lower())
    if criteria.query and criteria.query.strip():
        term = criteria.query.strip().lower()
        conditions.append(or_(
            NoteShareToken.token_hash.contains(term, autoescape=True),
            func.lower(Note.title).contains(term, autoescape=True),
        ))
    status = _status_filter(criteria.status)
    if status is not None:
        conditions.append(status)
    if criteria.created_from is not None:
        conditions.append(NoteShareToken.created_at >= criteria.created_from)
    if criteria.created_to is not None:
        conditions.append(NoteShareToken.created_at <= criteria.created_to)
    return and_(true(), *conditions)


class ShareTokenRepository:
    """Repository for share token database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        return (
            select(NoteShareToken)
            .join(Note, Note.id == NoteShareToken.note_id)
            .options(selectinload(NoteShareToken.note).selectinload(Note.tags))
            .execution_options(populate_existing=True)
        )

    async def add(self, token: NoteShareToken) -> NoteShareToken:
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_by_id(self, token_id: UUID) -> Optional[NoteShareToken]:
        result = await self.session.execute(self._select().where(NoteShareToken.id == token_id))
        return result.scalar_one_or_none()

    async def get_active_by_hash(self, token_hash: str, lock: bool = False) -> Optional[NoteShareToken]:
        """Non-revoked token by hash, optionally locking the row."""
        stmt = self._select().where(
            NoteShareToken.token_hash == token_hash, NoteShareToken.revoked.is_(False)
        )
        if lock:
            stmt = stmt.with_for_update(of=NoteShareToken)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def consume(self, token_id: UUID, one_time: bool) -> int:
        """Count one use; only succeeds while the token is still unrevoked."""
        values = {"use_count": NoteShareToken.use_count + 1}
        if one_time:
            values["revoked"] = True
        stmt = (
            update(NoteShareToken)
            .where(NoteShareToken.id == token_id, NoteShareToken.revoked.is_(False))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def revoke(self, token_id: UUID) -> int:
        stmt = (
            update(NoteShareToken)
            .where(NoteShareToken.id == token_id, NoteShareToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def find_page(self, criteria: ShareCriteria, page: PageRequest) -> Tuple[List[NoteShareToken], int]:
        order_by = parse_sort(page.sort, SORTABLE_COLUMNS) or [NoteShareToken.created_at.desc()]
        stmt = self._select().where(criteria_filter(criteria)).order_by(*order_by, NoteShareToken.id)
        return await fetch_page(self.session, stmt, page)

    async def purge_expired_or_revoked(self, now: datetime) -> List[UUID]:
        """Delete spent links; returns the ids removed."""
        spent = or_(
            NoteShareToken.revoked.is_(True),
            and_(NoteShareToken.expires_at.is_not(None), NoteShareToken.expires_at <= now),
        )
        ids = list((await self.session.execute(select(NoteShareToken.id).where(spent))).scalars().all())
        if ids:
            await self.session.execute(
                delete(NoteShareToken)
                .where(NoteShareToken.id.in_(ids))
                .execution_options(synchronize_session=False)
            )
        return ids
