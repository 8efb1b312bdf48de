"""Authentication dependencies."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.exceptions import AccessDeniedError, InvalidBearerTokenError
from ..security.cookies import AUTH_COOKIE
from ..security.jwt import get_principal_from_token
from ..security.principal import UserPrincipal


class JWTBearer(HTTPBearer):
    """Raw access token from the Authorization header, else the AUTH-TOKEN cookie."""

    def __init__(self):
        super(JWTBearer, self).__init__(auto_error=False)

    async def __call__(self, request: Request) -> Optional[str]:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials and credentials.credentials:
            return credentials.credentials
        return request.cookies.get(AUTH_COOKIE) or None


jwt_bearer = JWTBearer()


async def get_access_token(token: Optional[str] = Depends(jwt_bearer)) -> Optional[str]:
    return token


async def get_current_principal(token: Optional[str] = Depends(jwt_bearer)) -> UserPrincipal:
    """Authenticated principal; 401 when the token is missing or invalid."""
    if not token:
        raise InvalidBearerTokenError("Authentication required")
    principal = await get_principal_from_token(token)
    if principal is None:
        raise InvalidBearerTokenError("Invalid or expired token")
    return principal


async def require_admin(principal: UserPrincipal = Depends(get_current_principal)) -> UserPrincipal:
    if not principal.is_admin:
        raise AccessDeniedError("Administrator role required")
    return principal
