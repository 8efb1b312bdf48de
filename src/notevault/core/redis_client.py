"""Redis client for entity caching and access-token blacklisting."""

import logging
from typing import Optional

import redis.asyncio as redis

from ..config import get_settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Thin wrapper around ``redis.asyncio``.

    Every operation degrades to a no-op (None / False) while disconnected or
    when Redis errors, so the API keeps working without a cache.
    """

    def __init__(self):
        self.settings = get_settings()
        self.redis: Optional[redis.Redis] = None

    @property
    def connected(self) -> bool:
        return self.redis is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        try:
            client = redis.from_url(
                self.settings.redis_url,
                max_connections=self.settings.redis_max_connections,
                decode_responses=True,
            )
            await client.ping()
            self.redis = client
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def ping(self) -> bool:
        if not self.redis:
            return False
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.error(f"Redis PING error: {e}")
            return False

    async def get(self, key: str) -> Optional[str]:
        """Get value from Redis."""
        if not self.redis:
            return None
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        """Set value in Redis with optional expiration."""
        if not self.redis:
            return False
        try:
            if expire:
                return bool(await self.redis.setex(key, expire, value))
            return bool(await self.redis.set(key, value))
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, *keys: str) -> int:
        """Delete keys, returning how many existed."""
        if not self.redis or not keys:
            return 0
        try:
            return await self.redis.delete(*keys)
        except Exception as e:
            logger.error(f"Redis DELETE error for keys {keys}: {e}")
            return 0

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern."""
        if not self.redis:
            return 0
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            return await self.redis.delete(*keys) if keys else 0
        except Exception as e:
            logger.error(f"Redis pattern delete error for {pattern}: {e}")
            return 0

    async def exists(self, key: str) -> bool:
        """Check if key exists in Redis."""
        if not self.redis:
            return False
        try:
            return await self.redis.exists(key) > 0
        except Exception as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    async def add_to_blacklist(self, token_jti: str, expire: int) -> bool:
        """Blacklist an access token id until it would have expired anyway."""
        return await self.set(f"blacklist:{token_jti}", "blacklisted", expire)

    async def is_token_blacklisted(self, token_jti: str) -> bool:
        return await self.exists(f"blacklist:{token_jti}")


# Singleton instance
_redis_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """Get Redis client singleton."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client
