"""Authentication service implementation."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...security import (
    UserPrincipal,
    blacklist_token,
    create_token_for_user,
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)
from ..exceptions import (
    DisabledError,
    EmailAlreadyExistsError,
    InvalidBearerTokenError,
    InvalidCredentialsError,
    InvalidPasswordError,
    UsernameAlreadyExistsError,
    UsernameNotFoundError,
)
from ..logging import get_logger
from ..models.refresh_token import RefreshToken
from ..models.user import ROLE_USER, User
from ..repositories.pagination import PageRequest
from ..repositories.refresh_token_repository import RefreshTokenRepository
from ..repositories.user_repository import UserRepository
from ..schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    RegistrationResponse,
    TokenResponse,
    UserResponse,
    UserSearchListResponse,
    UserSearchResponse,
)
from .interfaces import IAuthService

logger = get_logger("services.auth")


class AuthService(IAuthService):
    """Authentication service implementation."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.token_repo = RefreshTokenRepository(session)
        self.settings = get_settings()

    async def _issue_tokens(self, user: User, remember_me: bool) -> TokenResponse:
        """New access JWT plus a stored refresh token. Caller commits."""
        access_token, expires_at = create_token_for_user(user.username, user.id, user.authority_names)

        days = (
            self.settings.refresh_token_remember_me_days
            if remember_me
            else self.settings.refresh_token_expire_days
        )
        now = datetime.now(timezone.utc)
        raw_refresh = generate_token(64)
        refresh = RefreshToken(
            token=hash_token(raw_refresh),
            user_id=user.id,
            issued_at=now,
            expires_at=now + timedelta(days=days),
            remember_me=remember_me,
            revoked=False,
        )
        await self.token_repo.add(refresh)

        return TokenResponse(
            access_token=access_token,
            expires_at=expires_at,
            refresh_token=raw_refresh,
            refresh_token_expires_at=refresh.expires_at,
            username=user.username,
            authorities=user.authority_names,
        )

    async def login(self, request: LoginRequest) -> TokenResponse:
        """Check credentials and hand out a token pair."""
        user = await self.user_repo.get_by_username(User.normalize(request.username))
        if user is None or not verify_password(request.password, user.password_hash):
            logger.info("Failed login", extra={"username": request.username})
            raise InvalidCredentialsError()
        if not user.enabled:
            raise DisabledError()

        response = await self._issue_tokens(user, request.remember_me)
        await self.session.commit()
        logger.info("User logged in", extra={"username": user.username})
        return response

    async def refresh(self, raw_token: Optional[str]) -> TokenResponse:
        """Rotate a refresh token.

        The old token is revoked and committed before anything else is checked,
        so a presented token can never be used twice.
        """
        if not raw_token or not raw_token.strip():
            raise InvalidBearerTokenError("Refresh token is missing")

        token = await self.token_repo.get_active_by_hash(hash_token(raw_token.strip()))
        if token is None:
            raise InvalidBearerTokenError("Invalid refresh token")
        revoked = await self.token_repo.revoke(token.id)
        await self.session.commit()
        if revoked == 0:
            raise InvalidBearerTokenError("Invalid refresh token")

        if token.is_expired:
            raise InvalidBearerTokenError("Refresh token expired")
        user = await self.user_repo.get_by_id(token.user_id)
        if user is None:
            raise UsernameNotFoundError()
        if not user.enabled:
            raise DisabledError()

        response = await self._issue_tokens(user, token.remember_me)
        await self.session.commit()
        return response

    async def logout(self, raw_token: Optional[str], access_token: Optional[str] = None) -> None:
        """Revoke the refresh token and blacklist the access token; unknown tokens are ignored."""
        if raw_token and raw_token.strip():
            token = await self.token_repo.get_active_by_hash(hash_token(raw_token.strip()))
            if token is not None:
                await self.token_repo.revoke(token.id)
                await self.session.commit()
        if access_token:
            await blacklist_token(access_token)

    async def register(self, request: RegisterRequest) -> RegistrationResponse:
        username = User.normalize(request.username)
        email = User.normalize(str(request.email))
        await self._ensure_unique(username, email)

        authority = await self.user_repo.get_authority(ROLE_USER)
        if authority is None:
            raise RuntimeError(f"Default authority {ROLE_USER} is missing")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(request.password),
            enabled=True,
            authorities=[authority],
        )
        try:
            await self.user_repo.add(user)
            await self.session.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            await self.session.rollback()
            await self._ensure_unique(username, email)
            raise

        logger.info("User registered", extra={"username": username})
        return RegistrationResponse.model_validate(user)

    async def _ensure_unique(self, username: str, email: str) -> None:
        if await self.user_repo.exists_by_username(username):
            raise UsernameAlreadyExistsError(username)
        if await self.user_repo.exists_by_email(email):
            raise EmailAlreadyExistsError(email)

    async def change_password(self, principal: UserPrincipal, request: PasswordChangeRequest) -> None:
        """Replace the password and sign the user out everywhere."""
        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise UsernameNotFoundError()
        if not verify_password(request.current_password, user.password_hash):
            raise InvalidPasswordError("Current password is incorrect.")
        if verify_password(request.new_password, user.password_hash):
            raise InvalidPasswordError("New password must be different from current password.")

        user.password_hash = hash_password(request.new_password)
        await self.session.flush()
        revoked = await self.token_repo.revoke_all_for_user(user.id)
        await self.session.commit()
        logger.info("Password changed", extra={"username": user.username, "revoked_tokens": revoked})

    async def get_current_user(self, principal: UserPrincipal) -> UserResponse:
        user = await self.user_repo.get_by_id(principal.user_id)
        if user is None:
            raise UsernameNotFoundError()
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            enabled=user.enabled,
            authorities=user.authority_names,
        )

    async def search_users(self, query: Optional[str], page: PageRequest) -> UserSearchListResponse:
        users, total = await self.user_repo.search_by_username(query, page)
        return UserSearchListResponse.create(
            items=[UserSearchResponse.model_validate(user) for user in users],
            total=total,
            page=page.page,
            per_page=page.per_page,
        )
