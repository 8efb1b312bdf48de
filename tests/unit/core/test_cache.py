from unittest.mock import AsyncMock

import pytest

from notevault.core.cache import NOTE_CACHE, SHARE_TOKEN_CACHE, TAG_CACHE, CacheProvider
from notevault.core.redis_client import RedisClient


@pytest.mark.asyncio
async def test_put_and_get(cache, fake_redis):
    await cache.put(NOTE_CACHE, "42", {"title": "hello"})

    assert "cache:Note:42" in fake_redis.storage
    assert await cache.get(NOTE_CACHE, "42") == {"title": "hello"}
    assert await cache.get(NOTE_CACHE, "missing") is None


@pytest.mark.asyncio
async def test_unreadable_entry_is_dropped(cache, fake_redis):
    fake_redis.storage["cache:Note:broken"] = "{not json"

    assert await cache.get(NOTE_CACHE, "broken") is None
    assert "cache:Note:broken" not in fake_redis.storage


@pytest.mark.asyncio
async def test_clear_cache_evicts_given_keys(cache, fake_redis):
    for key in ("a", "b", "c"):
        await cache.put(NOTE_CACHE, key, key)

    await cache.clear_cache(NOTE_CACHE, "a", "b")
    await cache.clear_cache(NOTE_CACHE)

    assert set(fake_redis.storage) == {"cache:Note:c"}


@pytest.mark.asyncio
async def test_clear_caches_by_name(cache, fake_redis):
    await cache.put(NOTE_CACHE, "n", 1)
    await cache.put(TAG_CACHE, "t", 1)
    await cache.put(SHARE_TOKEN_CACHE, "s", 1)

    await cache.clear_caches(TAG_CACHE, SHARE_TOKEN_CACHE)

    assert set(fake_redis.storage) == {"cache:Note:n"}


@pytest.mark.asyncio
async def test_disconnected_redis_is_a_no_op():
    cache = CacheProvider(redis_client=RedisClient())

    await cache.put(NOTE_CACHE, "x", {"a": 1})
    assert await cache.get(NOTE_CACHE, "x") is None
    await cache.clear_caches(NOTE_CACHE)


@pytest.mark.asyncio
async def test_blacklist_lookup_checks_key_existence():
    client = RedisClient()
    client.redis = AsyncMock()
    client.redis.exists.return_value = 1

    assert await client.is_token_blacklisted("abc") is True
    client.redis.exists.assert_awaited_once_with("blacklist:abc")

    client.redis.exists.side_effect = ConnectionError("redis went away")
    assert await client.is_token_blacklisted("abc") is False
