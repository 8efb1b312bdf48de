"""Opaque token helpers for refresh tokens and share links."""

import hashlib
import secrets


def generate_token(num_bytes: int = 32) -> str:
    """Random hex token with ``num_bytes`` of entropy."""
    return secrets.token_hex(num_bytes)


def hash_token(raw: str) -> str:
    """sha256 hex digest; the only form of an opaque token we store."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
