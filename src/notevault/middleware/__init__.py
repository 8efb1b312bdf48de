"""Middleware for authentication and other cross-cutting concerns."""

from .auth import (
    JWTBearer,
    get_access_token,
    get_current_principal,
    require_admin,
)

__all__ = [
    "JWTBearer",
    "get_access_token",
    "get_current_principal",
    "require_admin",
]
