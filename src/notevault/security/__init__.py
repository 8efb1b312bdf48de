"""Security utilities."""

from .jwt import blacklist_token, create_access_token, create_token_for_user, decode_access_token
from .password import hash_password, verify_password
from .principal import UserPrincipal
from .tokens import generate_token, hash_token

__all__ = [
    "UserPrincipal",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_token_for_user",
    "decode_access_token",
    "blacklist_token",
    "generate_token",
    "hash_token",
]
