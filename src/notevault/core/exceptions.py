"""
Domain exceptions and their translation to HTTP responses.

Services raise these; ``register_exception_handlers`` turns them into the
``ErrorResponse`` shape at the API boundary.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .logging import get_logger
from .schemas.common import ErrorResponse

logger = get_logger("errors")


class NoteVaultError(Exception):
    """Base class for all domain failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "InternalError"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


# --- not found ---------------------------------------------------------------

class NotFoundError(NoteVaultError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"


class NoteNotFoundError(NotFoundError):
    error = "NoteNotFound"

    def __init__(self, note_id: UUID):
        super().__init__(f"Note not found with id: {note_id}", {"id": str(note_id)})
        self.note_id = note_id


class RevisionNotFoundError(NotFoundError):
    error = "RevisionNotFound"

    def __init__(self, note_id: UUID, revision: int):
        super().__init__(
            f"Revision {revision} not found for note {note_id}",
            {"id": str(note_id), "revision": revision},
        )


class UserNotFoundError(NotFoundError):
    error = "UserNotFound"

    def __init__(self, username: str):
        super().__init__(f"User not found with username: {username}", {"username": username})


class ShareTokenNotFoundError(NotFoundError):
    error = "ShareTokenNotFound"

    def __init__(self, token_id: UUID):
        super().__init__("Share token not found", {"id": str(token_id)})


# --- conflicts -----------------------------------------------------------------

class ConflictError(NoteVaultError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class UsernameAlreadyExistsError(ConflictError):
    error = "UsernameAlreadyExists"

    def __init__(self, username: str):
        super().__init__(f"Username is already taken: {username}", {"username": username})


class EmailAlreadyExistsError(ConflictError):
    error = "EmailAlreadyExists"

    def __init__(self, email: str):
        super().__init__(f"Email is already registered: {email}", {"email": email})


class InvalidPermanentDeleteError(ConflictError):
    error = "InvalidPermanentDelete"

    def __init__(self, note_id: UUID):
        super().__init__(
            "Note must be soft deleted before it can be permanently deleted",
            {"id": str(note_id)},
        )


# --- forbidden -----------------------------------------------------------------

class AccessDeniedError(NoteVaultError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "AccessDenied"

    def __init__(self, message: str = "You are not allowed to modify this note"):
        super().__init__(message)


# --- unauthenticated -----------------------------------------------------------

class UnauthenticatedError(NoteVaultError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthenticated"


class InvalidBearerTokenError(UnauthenticatedError):
    error = "InvalidToken"


class InvalidCredentialsError(UnauthenticatedError):
    error = "InvalidCredentials"

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class UsernameNotFoundError(UnauthenticatedError):
    error = "UsernameNotFound"

    def __init__(self, message: str = "Current user not found"):
        super().__init__(message)


class DisabledError(UnauthenticatedError):
    error = "UserDisabled"

    def __init__(self, message: str = "User is disabled"):
        super().__init__(message)


# --- invalid operation ---------------------------------------------------------

class InvalidOperationError(NoteVaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "InvalidOperation"


class InvalidPasswordError(InvalidOperationError):
    error = "InvalidPassword"


def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NoteVaultError)
    async def domain_error_handler(request: Request, exc: NoteVaultError):
        if exc.status_code >= 500:
            logger.error("Domain error on %s: %s", request.url.path, exc.message)
        else:
            logger.info(
                "%s on %s %s", exc.error, request.method, request.url.path,
                extra={"status_code": exc.status_code},
            )
        return _error_response(exc.status_code, exc.error, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "ValidationFailed",
            "One or more validation errors occurred.",
            {"errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str})},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        response = _error_response(exc.status_code, "HTTPError", str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "InternalError", "Internal server error"
        )
