"""Ownership checks for note access."""

from typing import Any, Optional

from ...security.principal import UserPrincipal
from ..exceptions import AccessDeniedError, UsernameNotFoundError


def ensure_read_access(note: Any, principal: Optional[UserPrincipal]) -> None:
    """Admins may read any note; everyone else needs edit access."""
    if principal is not None and principal.is_admin:
        return
    ensure_edit_access(note, principal)


def ensure_edit_access(note: Any, principal: Optional[UserPrincipal]) -> None:
    """Only the owner may change a note.

    ``note`` can be an ORM note or a response DTO; only ``owner`` is read.
    """
    if principal is None or not principal.username:
        raise UsernameNotFoundError()
    if principal.username != note.owner:
        raise AccessDeniedError()
