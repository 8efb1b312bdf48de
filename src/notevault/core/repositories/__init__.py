"""Repository layer for data access."""

from .note_repository import NoteRepository
from .pagination import PageRequest
from .refresh_token_repository import RefreshTokenRepository
from .revision_repository import RevisionRepository
from .share_token_repository import ShareTokenRepository
from .tag_repository import TagRepository
from .user_repository import UserRepository

__all__ = [
    "PageRequest",
    "UserRepository",
    "NoteRepository",
    "RevisionRepository",
    "TagRepository",
    "ShareTokenRepository",
    "RefreshTokenRepository",
]
