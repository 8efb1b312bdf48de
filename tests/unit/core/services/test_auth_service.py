"""Unit tests for AuthService."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from jose import jwt
from sqlalchemy import select, update

from notevault.core.exceptions import (
    DisabledError,
    EmailAlreadyExistsError,
    InvalidBearerTokenError,
    InvalidCredentialsError,
    InvalidPasswordError,
    UsernameAlreadyExistsError,
)
from notevault.core.models.refresh_token import RefreshToken
from notevault.core.repositories.pagination import PageRequest
from notevault.core.schemas.auth import LoginRequest, PasswordChangeRequest, RegisterRequest
from notevault.core.services.auth_service import AuthService
from notevault.security.jwt import decode_access_token
from notevault.security.tokens import hash_token


@pytest.fixture
def auth(test_session):
    return AuthService(test_session)


async def _stored(session, raw):
    result = await session.execute(
        select(RefreshToken)
        .where(RefreshToken.token == hash_token(raw))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class TestLogin:
    async def test_login_issues_token_pair(self, auth, test_session, alice, user_password):
        tokens = await auth.login(LoginRequest(username="Alice", password=user_password))

        assert tokens.username == "alice"
        assert tokens.authorities == ["ROLE_USER"]
        assert tokens.token_type == "Bearer"
        payload = await decode_access_token(tokens.access_token)
        assert payload["sub"] == "alice"

        stored = await _stored(test_session, tokens.refresh_token)
        assert stored is not None
        assert stored.token != tokens.refresh_token
        assert stored.remember_me is False

    async def test_remember_me_extends_refresh_lifetime(self, auth, alice, user_password):
        short = await auth.login(LoginRequest(username="alice", password=user_password))
        long = await auth.login(LoginRequest(username="alice", password=user_password, remember_me=True))

        assert long.refresh_token_expires_at - short.refresh_token_expires_at > timedelta(days=20)

    @pytest.mark.parametrize("username,password", [("alice", "Wrong123!"), ("nobody", "Secret123!")])
    async def test_bad_credentials(self, auth, alice, username, password):
        with pytest.raises(InvalidCredentialsError):
            await auth.login(LoginRequest(username=username, password=password))

    async def test_disabled_user(self, auth, make_user, user_password):
        await make_user("sleepy", enabled=False)

        with pytest.raises(DisabledError):
            await auth.login(LoginRequest(username="sleepy", password=user_password))


class TestRefresh:
    async def test_rotation_spends_the_old_token(self, auth, test_session, alice, user_password):
        first = await auth.login(LoginRequest(username="alice", password=user_password))

        second = await auth.refresh(first.refresh_token)

        assert second.refresh_token != first.refresh_token
        assert (await _stored(test_session, first.refresh_token)).revoked is True
        with pytest.raises(InvalidBearerTokenError):
            await auth.refresh(first.refresh_token)

    async def test_rotation_keeps_remember_me(self, auth, test_session, alice, user_password):
        first = await auth.login(LoginRequest(username="alice", password=user_password, remember_me=True))

        second = await auth.refresh(first.refresh_token)

        assert (await _stored(test_session, second.refresh_token)).remember_me is True

    @pytest.mark.parametrize("raw", [None, "", "  ", "unknown"])
    async def test_missing_or_unknown(self, auth, raw):
        with pytest.raises(InvalidBearerTokenError):
            await auth.refresh(raw)

    async def test_expired_token_is_revoked_anyway(self, auth, test_session, alice, user_password):
        tokens = await auth.login(LoginRequest(username="alice", password=user_password))
        await test_session.execute(
            update(RefreshToken)
            .where(RefreshToken.token == hash_token(tokens.refresh_token))
            .values(expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        )
        await test_session.commit()

        with pytest.raises(InvalidBearerTokenError) as exc_info:
            await auth.refresh(tokens.refresh_token)

        assert exc_info.value.message == "Refresh token expired"
        assert (await _stored(test_session, tokens.refresh_token)).revoked is True

    async def test_disabled_user_cannot_refresh(self, auth, test_session, alice, user_password):
        tokens = await auth.login(LoginRequest(username="alice", password=user_password))
        alice.enabled = False
        await test_session.commit()

        with pytest.raises(DisabledError):
            await auth.refresh(tokens.refresh_token)


class TestLogout:
    async def test_logout_revokes_and_blacklists(self, auth, test_session, fake_redis, alice, user_password):
        tokens = await auth.login(LoginRequest(username="alice", password=user_password))

        await auth.logout(tokens.refresh_token, tokens.access_token)

        assert (await _stored(test_session, tokens.refresh_token)).revoked is True
        jti = jwt.get_unverified_claims(tokens.access_token)["jti"]
        assert f"blacklist:{jti}" in fake_redis.storage
        assert await decode_access_token(tokens.access_token) is None

    async def test_logout_ignores_unknown_tokens(self, auth, fake_redis):
        await auth.logout("unknown", "not-a-jwt")
        await auth.logout(None, None)
        assert fake_redis.storage == {}


class TestRegister:
    async def test_register_normalizes(self, auth, test_session):
        user = await auth.register(
            RegisterRequest(username=" Carol ", email="Carol@Example.com", password="Secret123!")
        )

        assert user.username == "carol"
        assert user.email == "carol@example.com"
        tokens = await auth.login(LoginRequest(username="carol", password="Secret123!"))
        assert tokens.authorities == ["ROLE_USER"]

    async def test_duplicate_username(self, auth, alice):
        with pytest.raises(UsernameAlreadyExistsError):
            await auth.register(RegisterRequest(username="ALICE", email="new@example.com", password="Secret123!"))

    async def test_duplicate_email(self, auth, alice):
        with pytest.raises(EmailAlreadyExistsError):
            await auth.register(
                RegisterRequest(username="alice2", email="alice@example.com", password="Secret123!")
            )

    async def test_lost_insert_race_reports_the_conflict(self, auth, alice, monkeypatch):
        # the uniqueness check passes, then the insert hits the unique index
        exists = AsyncMock(side_effect=[False, True])
        monkeypatch.setattr(auth.user_repo, "exists_by_username", exists)

        with pytest.raises(UsernameAlreadyExistsError):
            await auth.register(RegisterRequest(username="alice", email="other@example.com", password="Secret123!"))

        assert exists.await_count == 2


class TestPasswordChange:
    async def test_wrong_current_password(self, auth, alice_principal):
        with pytest.raises(InvalidPasswordError) as exc_info:
            await auth.change_password(
                alice_principal, PasswordChangeRequest(current_password="nope", new_password="Another123!")
            )
        assert exc_info.value.message == "Current password is incorrect."

    async def test_same_password_rejected(self, auth, alice_principal, user_password):
        with pytest.raises(InvalidPasswordError):
            await auth.change_password(
                alice_principal,
                PasswordChangeRequest(current_password=user_password, new_password=user_password),
            )

    async def test_change_signs_out_everywhere(self, auth, test_session, alice_principal, user_password):
        tokens = await auth.login(LoginRequest(username="alice", password=user_password))

        await auth.change_password(
            alice_principal, PasswordChangeRequest(current_password=user_password, new_password="Another123!")
        )

        assert (await _stored(test_session, tokens.refresh_token)).revoked is True
        with pytest.raises(InvalidCredentialsError):
            await auth.login(LoginRequest(username="alice", password=user_password))
        assert (await auth.login(LoginRequest(username="alice", password="Another123!"))).username == "alice"


async def test_current_user_and_search(auth, alice_principal, bob, admin):
    me = await auth.get_current_user(alice_principal)
    assert me.username == "alice"
    assert me.enabled is True

    found = await auth.search_users("O", PageRequest(page=1, per_page=10))
    assert [user.username for user in found.items] == ["bob"]

    everyone = await auth.search_users(None, PageRequest(page=1, per_page=10))
    assert [user.username for user in everyone.items] == ["admin", "alice", "bob"]
