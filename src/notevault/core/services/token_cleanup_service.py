"""Periodic purge of spent share links and refresh tokens."""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ... import database
from ..cache import SHARE_TOKEN_CACHE, CacheProvider, get_cache_provider
from ..logging import get_logger
from ..repositories.refresh_token_repository import RefreshTokenRepository
from ..repositories.share_token_repository import ShareTokenRepository
from .interfaces import ITokenCleanupService

logger = get_logger("services.token_cleanup")


class TokenCleanupService(ITokenCleanupService):
    """Deletes revoked or expired tokens. Each purge commits on its own."""

    def __init__(self, session: AsyncSession, cache: Optional[CacheProvider] = None):
        self.session = session
        self.share_repo = ShareTokenRepository(session)
        self.refresh_repo = RefreshTokenRepository(session)
        self.cache = cache or get_cache_provider()

    async def purge_share_tokens(self) -> int:
        ids = await self.share_repo.purge_expired_or_revoked(datetime.now(timezone.utc))
        await self.session.commit()
        if ids:
            await self.cache.clear_cache(SHARE_TOKEN_CACHE, *ids)
            logger.info("Purged share links", extra={"count": len(ids)})
        return len(ids)

    async def purge_refresh_tokens(self) -> int:
        purged = await self.refresh_repo.purge_expired_or_revoked(datetime.now(timezone.utc))
        await self.session.commit()
        if purged:
            logger.info("Purged refresh tokens", extra={"count": purged})
        return purged

    async def purge_expired_and_revoked(self) -> Dict[str, int]:
        return {
            "share_tokens": await self.purge_share_tokens(),
            "refresh_tokens": await self.purge_refresh_tokens(),
        }


async def run_token_cleanup(
    interval_seconds: float,
    session_factory: Optional[Callable[[], AsyncSession]] = None,
) -> None:
    """Purge every ``interval_seconds`` until cancelled.

    A failed run is logged and retried on the next tick.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        factory = session_factory or database.AsyncSessionLocal
        try:
            async with factory() as session:
                await TokenCleanupService(session).purge_expired_and_revoked()
        except Exception:
            logger.exception("Token cleanup failed")
