"""
Database models for NoteVault.

Models included:
    - User / Authority: accounts and roles
    - Note: note content with soft-delete and audit columns
    - Tag: normalized tag names linked to notes through ``note_tags``
    - NoteShareToken: hashed share links
    - RefreshToken: hashed refresh tokens
    - NoteRevision: note history snapshots
"""

from .base import BaseModel
from .note import Note
from .refresh_token import RefreshToken
from .revision import NoteRevision
from .share_token import NoteShareToken
from .tag import Tag, note_tags
from .user import Authority, User, user_authorities

__all__ = [
    "BaseModel",
    "User",
    "Authority",
    "user_authorities",
    "Note",
    "Tag",
    "note_tags",
    "NoteShareToken",
    "RefreshToken",
    "NoteRevision",
]
