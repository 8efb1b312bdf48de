"""
Unit tests for JWT access token utilities.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt

from notevault.config import get_settings
from notevault.core.redis_client import RedisClient
from notevault.security.jwt import (
    blacklist_token,
    create_access_token,
    create_token_for_user,
    decode_access_token,
    get_principal_from_token,
)


def _raw_token(**overrides):
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims = {
        "sub": "alice",
        "userId": str(uuid4()),
        "auth": ["ROLE_USER"],
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "type": "access",
        "jti": str(uuid4()),
    }
    claims.update(overrides)
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


class TestCreate:
    async def test_claims(self):
        user_id = uuid4()
        token, expires_at = create_token_for_user("alice", user_id, ["ROLE_USER", "ROLE_ADMIN"])

        payload = await decode_access_token(token)

        assert payload["sub"] == "alice"
        assert payload["userId"] == str(user_id)
        assert payload["auth"] == ["ROLE_ADMIN", "ROLE_USER"]
        assert payload["iss"] == get_settings().jwt_issuer
        assert payload["aud"] == get_settings().jwt_audience
        assert payload["type"] == "access"
        assert payload["jti"]
        assert abs(payload["exp"] - int(expires_at.timestamp())) <= 1

    def test_default_lifetime(self):
        _, expires_at = create_access_token({"sub": "alice"})
        expected = datetime.now(timezone.utc) + timedelta(minutes=get_settings().access_token_expire_minutes)
        assert abs((expires_at - expected).total_seconds()) < 5

    def test_every_token_has_its_own_jti(self):
        first, _ = create_access_token({"sub": "alice"})
        second, _ = create_access_token({"sub": "alice"})
        assert jwt.get_unverified_claims(first)["jti"] != jwt.get_unverified_claims(second)["jti"]


class TestDecode:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"aud": "someone-else"},
            {"iss": "evil"},
            {"type": "refresh"},
            {"exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        ],
    )
    async def test_rejected_tokens(self, overrides):
        assert await decode_access_token(_raw_token(**overrides)) is None

    async def test_wrong_signature(self):
        token = jwt.encode({"sub": "alice"}, "another-secret", algorithm="HS256")
        assert await decode_access_token(token) is None

    async def test_garbage(self):
        assert await decode_access_token("not.a.jwt") is None

    async def test_principal(self):
        user_id = uuid4()
        token, _ = create_token_for_user("admin", user_id, ["ROLE_ADMIN", "ROLE_USER"])

        principal = await get_principal_from_token(token)

        assert principal.user_id == user_id
        assert principal.username == "admin"
        assert principal.is_admin

    async def test_principal_needs_valid_user_id(self):
        assert await get_principal_from_token(_raw_token(userId="not-a-uuid")) is None


class TestBlacklist:
    async def test_blacklisted_token_is_rejected(self, fake_redis):
        token, _ = create_token_for_user("alice", uuid4(), ["ROLE_USER"])

        assert await blacklist_token(token) is True

        jti = jwt.get_unverified_claims(token)["jti"]
        assert await fake_redis.is_token_blacklisted(jti)
        assert await decode_access_token(token) is None

    async def test_blacklist_without_redis(self, monkeypatch):
        import notevault.core.redis_client as redis_module

        monkeypatch.setattr(redis_module, "_redis_client", RedisClient())
        token, _ = create_token_for_user("alice", uuid4(), ["ROLE_USER"])

        assert await blacklist_token(token) is False
        assert await decode_access_token(token) is not None

    async def test_invalid_token_is_not_blacklisted(self, fake_redis):
        assert await blacklist_token("garbage") is False
        assert fake_redis.storage == {}
