"""Auth cookies carrying the access and refresh tokens."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Response

from ..config import get_settings
from ..core.models.base import as_utc

AUTH_COOKIE = "AUTH-TOKEN"
REFRESH_COOKIE = "REFRESH-TOKEN"


def _seconds_until(expires_at: datetime) -> int:
    delta = as_utc(expires_at) - datetime.now(timezone.utc)
    return max(0, int(delta.total_seconds()))


def _set(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        secure=get_settings().cookie_secure,
        httponly=True,
        samesite="strict",
    )


def set_auth_cookies(
    response: Response,
    access_token: str,
    access_expires_at: datetime,
    refresh_token: Optional[str] = None,
    refresh_expires_at: Optional[datetime] = None,
) -> None:
    _set(response, AUTH_COOKIE, access_token, _seconds_until(access_expires_at))
    if refresh_token and refresh_expires_at:
        _set(response, REFRESH_COOKIE, refresh_token, _seconds_until(refresh_expires_at))


def clear_auth_cookies(response: Response) -> None:
    _set(response, AUTH_COOKIE, "", 0)
    _set(response, REFRESH_COOKIE, "", 0)
