"""JWT access token utilities."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import UUID

from jose import JWTError, jwt

from ..config import get_settings
from ..core.logging import get_logger
from ..core.redis_client import get_redis_client
from .principal import UserPrincipal

logger = get_logger("security.jwt")

AUTHORITIES_CLAIM = "auth"
USER_ID_CLAIM = "userId"


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> Tuple[str, datetime]:
    """Sign an access token; returns the token and its expiry.

    ``iss``/``aud``/``iat``/``exp`` plus a ``jti`` for blacklisting are added
    on top of ``data``.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = data.copy()
    to_encode.update({
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": expire,
        "type": "access",
        "jti": str(uuid.uuid4()),
    })
    token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return token, expire


def create_token_for_user(
    username: str, user_id: UUID, authorities: Iterable[str], expires_delta: Optional[timedelta] = None
) -> Tuple[str, datetime]:
    return create_access_token(
        {
            "sub": username,
            AUTHORITIES_CLAIM: sorted(authorities),
            USER_ID_CLAIM: str(user_id),
        },
        expires_delta,
    )


def _decode(token: str) -> Optional[Dict[str, Any]]:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    return payload


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Validate signature, expiry, issuer, audience and the Redis blacklist."""
    payload = _decode(token)
    if payload is None:
        return None

    jti = payload.get("jti")
    if jti and await get_redis_client().is_token_blacklisted(jti):
        return None
    return payload


async def get_principal_from_token(token: str) -> Optional[UserPrincipal]:
    """Build the request principal from a valid access token."""
    payload = await decode_access_token(token)
    if not payload:
        return None

    username = payload.get("sub")
    try:
        user_id = UUID(str(payload.get(USER_ID_CLAIM)))
    except ValueError:
        return None
    if not username:
        return None

    return UserPrincipal(
        user_id=user_id,
        username=username,
        authorities=frozenset(payload.get(AUTHORITIES_CLAIM) or ()),
    )


async def blacklist_token(token: str) -> bool:
    """Blacklist an access token's jti for the rest of its lifetime."""
    payload = _decode(token)
    if not payload or not payload.get("jti") or not payload.get("exp"):
        return False

    expire_time = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    remaining_seconds = int((expire_time - datetime.now(timezone.utc)).total_seconds())
    if remaining_seconds <= 0:
        return False

    blacklisted = await get_redis_client().add_to_blacklist(payload["jti"], remaining_seconds)
    if not blacklisted:
        logger.debug("Access token not blacklisted; Redis unavailable")
    return blacklisted
