"""Named entity caches on top of Redis.

Keys look like ``cache:<name>:<key>`` where ``<name>`` is the entity class
name (``Note``, ``Tag``, ``NoteShareToken``).
"""

import json
from typing import Any, Optional

from ..config import get_settings
from .logging import get_logger
from .redis_client import RedisClient, get_redis_client

logger = get_logger("cache")

NOTE_CACHE = "Note"
TAG_CACHE = "Tag"
SHARE_TOKEN_CACHE = "NoteShareToken"


class CacheProvider:
    """Read-through helpers and eviction hooks."""

    def __init__(self, redis_client: Optional[RedisClient] = None):
        self.redis = redis_client or get_redis_client()
        self.ttl = get_settings().cache_ttl_seconds

    @staticmethod
    def key(name: str, key: Any) -> str:
        return f"cache:{name}:{key}"

    async def get(self, name: str, key: Any) -> Optional[Any]:
        raw = await self.redis.get(self.key(name, key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Dropping unreadable cache entry %s", self.key(name, key))
            await self.redis.delete(self.key(name, key))
            return None

    async def put(self, name: str, key: Any, value: Any) -> None:
        await self.redis.set(self.key(name, key), json.dumps(value, default=str), self.ttl)

    async def clear_cache(self, name: str, *keys: Any) -> None:
        """Evict specific keys of one cache."""
        if keys:
            await self.redis.delete(*(self.key(name, key) for key in keys))

    async def clear_caches(self, *names: str) -> None:
        """Evict whole caches."""
        for name in names:
            removed = await self.redis.delete_pattern(self.key(name, "*"))
            if removed:
                logger.debug("Cleared %d entries from cache %s", removed, name)


def get_cache_provider() -> CacheProvider:
    return CacheProvider()
