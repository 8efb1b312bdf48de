"""API routers for NoteVault."""

from .admin import router as admin_router
from .auth import router as auth_router
from .health import router as health_router
from .notes import router as notes_router
from .sharing import router as sharing_router
from .tags import router as tags_router

__all__ = [
    "admin_router",
    "auth_router",
    "health_router",
    "notes_router",
    "sharing_router",
    "tags_router",
]
