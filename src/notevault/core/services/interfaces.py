"""
Service interfaces for NoteVault application.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from ...security.principal import UserPrincipal
from ..models.tag import Tag
from ..repositories.pagination import PageRequest
from ..schemas.auth import (
    LoginRequest, PasswordChangeRequest, RegisterRequest, RegistrationResponse,
    TokenResponse, UserResponse, UserSearchListResponse
)
from ..schemas.common import HealthCheckResponse
from ..schemas.notes import (
    BulkAction, BulkActionResult, NoteCreate, NoteCriteria, NoteListResponse, NotePatch,
    NoteResponse, NoteRevisionListResponse, NoteRevisionResponse, NoteUpdate, TagListResponse
)
from ..schemas.sharing import ShareCriteria, ShareListResponse, ShareRequest, ShareResponse


class IAuthService(ABC):
    """Auth service for user management."""

    @abstractmethod
    async def login(self, request: LoginRequest) -> TokenResponse:
        """Login user and return access + refresh tokens."""
        pass

    @abstractmethod
    async def refresh(self, raw_token: Optional[str]) -> TokenResponse:
        """Rotate a refresh token."""
        pass

    @abstractmethod
    async def logout(self, raw_token: Optional[str], access_token: Optional[str] = None) -> None:
        """Revoke refresh token and blacklist the access token."""
        pass

    @abstractmethod
    async def register(self, request: RegisterRequest) -> RegistrationResponse:
        """Register new user."""
        pass

    @abstractmethod
    async def change_password(self, principal: UserPrincipal, request: PasswordChangeRequest) -> None:
        """Change user password."""
        pass

    @abstractmethod
    async def get_current_user(self, principal: UserPrincipal) -> UserResponse:
        """Get the authenticated user's profile."""
        pass

    @abstractmethod
    async def search_users(self, query: Optional[str], page: PageRequest) -> UserSearchListResponse:
        """Search users by username."""
        pass


class ITagService(ABC):
    """Tag lifecycle."""

    @abstractmethod
    async def resolve_tags(self, names: Optional[Iterable[str]]) -> List[Tag]:
        """Find or create tags by name."""
        pass

    @abstractmethod
    async def cleanup_orphan_tags(self) -> int:
        """Delete unreferenced tags."""
        pass

    @abstractmethod
    def cleanup_orphan_tags_async(self) -> asyncio.Task:
        """Schedule orphan cleanup in the background."""
        pass

    @abstractmethod
    async def suggest(self, prefix: Optional[str], page: PageRequest) -> TagListResponse:
        """Tags starting with a prefix."""
        pass


class INoteQueryService(ABC):
    """Note reads."""

    @abstractmethod
    async def find_all(self, criteria: Optional[NoteCriteria], page: PageRequest) -> NoteListResponse:
        """Active notes of every user."""
        pass

    @abstractmethod
    async def find_all_for_current_user(
        self, principal: UserPrincipal, criteria: Optional[NoteCriteria], page: PageRequest
    ) -> NoteListResponse:
        """Active notes of the current user."""
        pass

    @abstractmethod
    async def find_deleted(self, criteria: Optional[NoteCriteria], page: PageRequest) -> NoteListResponse:
        """Trashed notes of every user."""
        pass

    @abstractmethod
    async def find_deleted_for_current_user(
        self, principal: UserPrincipal, criteria: Optional[NoteCriteria], page: PageRequest
    ) -> NoteListResponse:
        """Trashed notes of the current user."""
        pass

    @abstractmethod
    async def find_by_id(self, note_id: UUID) -> NoteResponse:
        """Get active note by ID."""
        pass

    @abstractmethod
    async def find_by_id_for_current_user(self, note_id: UUID, principal: UserPrincipal) -> NoteResponse:
        """Get active note by ID with a read check."""
        pass


class INoteCommandService(ABC):
    """Note writes."""

    @abstractmethod
    async def create(self, request: NoteCreate, principal: UserPrincipal) -> NoteResponse:
        """Create new note."""
        pass

    @abstractmethod
    async def update(self, note_id: UUID, request: NoteUpdate, principal: UserPrincipal) -> NoteResponse:
        """Replace a note."""
        pass

    @abstractmethod
    async def patch(self, note_id: UUID, request: NotePatch, principal: UserPrincipal) -> NoteResponse:
        """Partially update a note."""
        pass

    @abstractmethod
    async def delete(self, note_id: UUID, principal: UserPrincipal) -> None:
        """Move a note to the trash."""
        pass

    @abstractmethod
    async def restore(self, note_id: UUID, principal: UserPrincipal) -> None:
        """Take a note out of the trash."""
        pass

    @abstractmethod
    async def delete_permanently(self, note_id: UUID, principal: UserPrincipal) -> None:
        """Hard-delete a trashed note."""
        pass

    @abstractmethod
    async def empty_trash(self, principal: UserPrincipal) -> int:
        """Purge every trashed note."""
        pass

    @abstractmethod
    async def bulk(
        self, action: BulkAction, note_ids: Iterable[UUID], principal: UserPrincipal
    ) -> BulkActionResult:
        """Apply one action to many notes."""
        pass

    @abstractmethod
    async def change_owner(self, note_id: UUID, owner: str, principal: UserPrincipal) -> NoteResponse:
        """Hand a note to another user."""
        pass


class INoteRevisionService(ABC):
    """Note history."""

    @abstractmethod
    async def find_revisions(self, note_id: UUID, page: PageRequest) -> NoteRevisionListResponse:
        """Revisions of a note, newest first."""
        pass

    @abstractmethod
    async def find_revision(self, note_id: UUID, revision: int) -> NoteRevisionResponse:
        """One revision of a note."""
        pass

    @abstractmethod
    async def restore_revision(self, note_id: UUID, revision: int, principal: UserPrincipal) -> NoteResponse:
        """Roll a note back to a revision."""
        pass


class INoteShareService(ABC):
    """Note share links."""

    @abstractmethod
    async def create(self, note_id: UUID, request: ShareRequest, principal: UserPrincipal) -> ShareResponse:
        """Issue a share link."""
        pass

    @abstractmethod
    async def validate_and_consume(self, raw_token: str) -> NoteResponse:
        """Use a share link."""
        pass

    @abstractmethod
    async def revoke(self, token_id: UUID, principal: UserPrincipal) -> None:
        """Revoke a share link."""
        pass

    @abstractmethod
    async def list_for_note(
        self, note_id: UUID, criteria: Optional[ShareCriteria], page: PageRequest
    ) -> ShareListResponse:
        """Share links of one note."""
        pass

    @abstractmethod
    async def list_all_for_admin(
        self, criteria: Optional[ShareCriteria], page: PageRequest
    ) -> ShareListResponse:
        """Every share link."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass


class ITokenCleanupService(ABC):
    """Housekeeping for spent share links and refresh tokens."""

    @abstractmethod
    async def purge_share_tokens(self) -> int:
        """Delete revoked or expired share links."""
        pass

    @abstractmethod
    async def purge_refresh_tokens(self) -> int:
        """Delete revoked or expired refresh tokens."""
        pass

    @abstractmethod
    async def purge_expired_and_revoked(self) -> Dict[str, int]:
        """Run both purges."""
        pass
