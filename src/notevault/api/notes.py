"""Notes API endpoints for the current user."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.repositories.pagination import PageRequest
from ..core.schemas.notes import (
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
)
from ..core.services import NoteCommandService, NoteQueryService, NoteRevisionService
from ..database import get_db_session
from ..middleware.auth import get_current_principal
from ..security.principal import UserPrincipal
from .params import note_criteria, page_params

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    request: NoteCreate,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a new note."""
    note_service = NoteCommandService(session)
    return await note_service.create(request, principal)


@router.get("", response_model=NoteListResponse)
async def list_notes(
    criteria: NoteCriteria = Depends(note_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """List the user's active notes; pinned notes come first."""
    query_service = NoteQueryService(session)
    return await query_service.find_all_for_current_user(principal, criteria, page)


@router.get("/deleted", response_model=NoteListResponse)
async def list_deleted_notes(
    criteria: NoteCriteria = Depends(note_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """List the user's trash."""
    query_service = NoteQueryService(session)
    return await query_service.find_deleted_for_current_user(principal, criteria, page)


@router.delete("/deleted", status_code=status.HTTP_204_NO_CONTENT)
async def empty_trash(
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Permanently delete everything in the user's trash."""
    note_service = NoteCommandService(session)
    await note_service.empty_trash_for_current_user(principal)


@router.post("/bulk", response_model=BulkActionResult)
async def bulk_action(
    request: BulkActionRequest,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Soft delete, restore or purge several notes at once."""
    note_service = NoteCommandService(session)
    return await note_service.bulk_for_current_user(request.action, request.ids, principal)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a specific note."""
    query_service = NoteQueryService(session)
    return await query_service.find_by_id_for_current_user(note_id, principal)


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Replace a note."""
    note_service = NoteCommandService(session)
    return await note_service.update_for_current_user(note_id, request, principal)


@router.patch("/{note_id}", response_model=NoteResponse)
async def patch_note(
    note_id: UUID,
    request: NotePatch,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Update only the provided fields of a note."""
    note_service = NoteCommandService(session)
    return await note_service.patch_for_current_user(note_id, request, principal)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Move a note to the trash."""
    note_service = NoteCommandService(session)
    await note_service.delete_for_current_user(note_id, principal)


@router.post("/{note_id}/restore", status_code=status.HTTP_204_NO_CONTENT)
async def restore_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Take a note out of the trash."""
    note_service = NoteCommandService(session)
    await note_service.restore_for_current_user(note_id, principal)


@router.delete("/{note_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note_permanently(
    note_id: UUID,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Permanently delete a trashed note."""
    note_service = NoteCommandService(session)
    await note_service.delete_permanently_for_current_user(note_id, principal)


@router.get("/{note_id}/revisions", response_model=NoteRevisionListResponse)
async def list_revisions(
    note_id: UUID,
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Revision history of a note, newest first."""
    revision_service = NoteRevisionService(session)
    return await revision_service.find_revisions_for_current_user(note_id, principal, page)


@router.get("/{note_id}/revisions/{revision}", response_model=NoteRevisionResponse)
async def get_revision(
    note_id: UUID,
    revision: int,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    revision_service = NoteRevisionService(session)
    return await revision_service.find_revision_for_current_user(note_id, revision, principal)


@router.post("/{note_id}/revisions/{revision}/restore", response_model=NoteResponse)
async def restore_revision(
    note_id: UUID,
    revision: int,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Copy a revision's fields back onto the note."""
    revision_service = NoteRevisionService(session)
    return await revision_service.restore_revision_for_current_user(note_id, revision, principal)
