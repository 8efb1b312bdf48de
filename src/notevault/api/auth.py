"""Authentication API endpoints."""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    RegistrationResponse,
    TokenResponse,
    UserResponse,
)
from ..core.services import AuthService
from ..database import get_db_session
from ..middleware.auth import get_access_token, get_current_principal
from ..security.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from ..security.principal import UserPrincipal

router = APIRouter(prefix="/auth", tags=["authentication"])


def _set_token_cookies(response: Response, tokens: TokenResponse) -> None:
    set_auth_cookies(
        response,
        tokens.access_token,
        tokens.expires_at,
        tokens.refresh_token,
        tokens.refresh_token_expires_at,
    )


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, session: AsyncSession = Depends(get_db_session)):
    """Register a new user."""
    auth_service = AuthService(session)
    return await auth_service.register(request)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
):
    """Login user; tokens come back in the body and as httpOnly cookies."""
    auth_service = AuthService(session)
    tokens = await auth_service.login(request)
    _set_token_cookies(response, tokens)
    return tokens


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    response: Response,
    request: Optional[RefreshTokenRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    session: AsyncSession = Depends(get_db_session),
):
    """Trade a refresh token (body or cookie) for a new token pair."""
    raw_token = (request.refresh_token if request else None) or refresh_cookie
    auth_service = AuthService(session)
    tokens = await auth_service.refresh(raw_token)
    _set_token_cookies(response, tokens)
    return tokens


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    response: Response,
    request: Optional[RefreshTokenRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    access_token: Optional[str] = Depends(get_access_token),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke the refresh token, blacklist the access token and clear cookies."""
    raw_token = (request.refresh_token if request else None) or refresh_cookie
    auth_service = AuthService(session)
    await auth_service.logout(raw_token, access_token)
    clear_auth_cookies(response)


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Get current user profile."""
    auth_service = AuthService(session)
    return await auth_service.get_current_user(principal)


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    request: PasswordChangeRequest,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Change user password; every refresh token of the user is revoked."""
    auth_service = AuthService(session)
    await auth_service.change_password(principal, request)
