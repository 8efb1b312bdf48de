"""
Pydantic schemas for validating and documenting API requests and responses.
"""

from .auth import (
    LoginRequest,
    PasswordChangeRequest,
    RefreshTokenRequest,
    RegisterRequest,
    RegistrationResponse,
    TokenResponse,
    UserResponse,
    UserSearchListResponse,
    UserSearchResponse,
)
from .common import ErrorResponse, HealthCheckResponse, PaginationResponse
from .notes import (
    BulkAction,
    BulkActionRequest,
    BulkActionResult,
    NoteCreate,
    NoteCriteria,
    NoteListResponse,
    NotePatch,
    NoteResponse,
    NoteRevisionListResponse,
    NoteRevisionResponse,
    NoteUpdate,
    OwnerChangeRequest,
    TagListResponse,
    TagResponse,
)
from .sharing import ShareCriteria, ShareListResponse, ShareRequest, ShareResponse, ShareStatus

__all__ = [
    # Auth schemas
    "LoginRequest",
    "RegisterRequest",
    "RegistrationResponse",
    "TokenResponse",
    "UserResponse",
    "RefreshTokenRequest",
    "PasswordChangeRequest",
    "UserSearchResponse",
    "UserSearchListResponse",
    # Note schemas
    "NoteCreate",
    "NoteUpdate",
    "NotePatch",
    "NoteCriteria",
    "NoteResponse",
    "NoteListResponse",
    "NoteRevisionResponse",
    "NoteRevisionListResponse",
    "OwnerChangeRequest",
    "BulkAction",
    "BulkActionRequest",
    "BulkActionResult",
    "TagResponse",
    "TagListResponse",
    # Sharing schemas
    "ShareRequest",
    "ShareResponse",
    "ShareListResponse",
    "ShareCriteria",
    "ShareStatus",
    # Common schemas
    "PaginationResponse",
    "ErrorResponse",
    "HealthCheckResponse",
]
