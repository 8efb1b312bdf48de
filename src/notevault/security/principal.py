"""The authenticated caller, resolved once per request."""

from dataclasses import dataclass, field
from typing import FrozenSet
from uuid import UUID

from ..core.models.user import ROLE_ADMIN


@dataclass(frozen=True)
class UserPrincipal:
    user_id: UUID
    username: str
    authorities: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.authorities
