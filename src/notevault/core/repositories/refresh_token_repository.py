"""Refresh token repository for database operations."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.refresh_token import RefreshToken


class RefreshTokenRepository:
    """Repository for refresh token database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, token: RefreshToken) -> RefreshToken:
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_active_by_hash(self, token_hash: str) -> Optional[RefreshToken]:
        """Non-revoked token with this hash; expiry is checked by the caller."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token == token_hash, RefreshToken.revoked.is_(False))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def revoke(self, token_id: UUID) -> int:
        """Revoke one token; 0 if it was already revoked."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def purge_expired_or_revoked(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(or_(RefreshToken.expires_at < now, RefreshToken.revoked.is_(True)))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
