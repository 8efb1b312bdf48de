"""
Service layer interfaces and implementations.
"""

from .interfaces import (
    IAuthService,
    IHealthService,
    INoteCommandService,
    INoteQueryService,
    INoteRevisionService,
    INoteShareService,
    ITagService,
    ITokenCleanupService,
)

from .auth_service import AuthService
from .health_service import HealthService
from .note_command_service import NoteCommandService
from .note_query_service import NoteQueryService
from .note_revision_service import NoteRevisionService
from .note_share_service import NoteShareService
from .tag_service import TagService
from .token_cleanup_service import TokenCleanupService

__all__ = [
    # Interfaces
    "IAuthService",
    "IHealthService",
    "INoteCommandService",
    "INoteQueryService",
    "INoteRevisionService",
    "INoteShareService",
    "ITagService",
    "ITokenCleanupService",

    # Implementations
    "AuthService",
    "HealthService",
    "NoteCommandService",
    "NoteQueryService",
    "NoteRevisionService",
    "NoteShareService",
    "TagService",
    "TokenCleanupService",
]
