"""Administrator endpoints: the notes API without ownership checks, plus user search."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.repositories.pagination import PageRequest
from ..core.schemas.auth import UserSearchListResponse
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
    OwnerChangeRequest,
)
from ..core.schemas.sharing import ShareCriteria, ShareListResponse, ShareRequest, ShareResponse
from ..core.services import (
    AuthService,
    NoteCommandService,
    NoteQueryService,
    NoteRevisionService,
    NoteShareService,
)
from ..database import get_db_session
from ..middleware.auth import require_admin
from ..security.principal import UserPrincipal
from .params import note_criteria, page_params, share_criteria

router = APIRouter(prefix="/admin", tags=["admin"])


def _with_owner(criteria, owner: Optional[str]):
    if owner and owner.strip():
        return criteria.model_copy(update={"owner": owner.strip()})
    return criteria


# --- shares (before /notes/{note_id}) ---------------------------------------------

@router.get("/notes/share", response_model=ShareListResponse)
async def list_all_shares(
    owner: Optional[str] = Query(None, description="Only shares on this user's notes"),
    criteria: ShareCriteria = Depends(share_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = NoteShareService(session)
    return await sharing_service.list_all_for_admin(_with_owner(criteria, owner), page)


@router.delete("/notes/share/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_share(
    token_id: UUID,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = NoteShareService(session)
    await sharing_service.revoke(token_id, principal)


# --- notes ---------------------------------------------------------------------------

@router.post("/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    request: NoteCreate,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    return await note_service.create(request, principal)


@router.get("/notes", response_model=NoteListResponse)
async def list_notes(
    owner: Optional[str] = Query(None, description="Filter by owner username"),
    criteria: NoteCriteria = Depends(note_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Active notes of every user."""
    query_service = NoteQueryService(session)
    return await query_service.find_all(_with_owner(criteria, owner), page)


@router.get("/notes/deleted", response_model=NoteListResponse)
async def list_deleted_notes(
    owner: Optional[str] = Query(None, description="Filter by owner username"),
    criteria: NoteCriteria = Depends(note_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    query_service = NoteQueryService(session)
    return await query_service.find_deleted(_with_owner(criteria, owner), page)


@router.delete("/notes/deleted", status_code=status.HTTP_204_NO_CONTENT)
async def empty_trash(
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Purge every user's trash."""
    note_service = NoteCommandService(session)
    await note_service.empty_trash(principal)


@router.post("/notes/bulk", response_model=BulkActionResult)
async def bulk_action(
    request: BulkActionRequest,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    return await note_service.bulk(request.action, request.ids, principal)


@router.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    query_service = NoteQueryService(session)
    return await query_service.find_by_id(note_id)


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    return await note_service.update(note_id, request, principal)


@router.patch("/notes/{note_id}", response_model=NoteResponse)
async def patch_note(
    note_id: UUID,
    request: NotePatch,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    return await note_service.patch(note_id, request, principal)


@router.patch("/notes/{note_id}/owner", response_model=NoteResponse)
async def change_owner(
    note_id: UUID,
    request: OwnerChangeRequest,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Hand a note over to another user."""
    note_service = NoteCommandService(session)
    return await note_service.change_owner(note_id, request.owner, principal)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    await note_service.delete(note_id, principal)


@router.post("/notes/{note_id}/restore", status_code=status.HTTP_204_NO_CONTENT)
async def restore_note(
    note_id: UUID,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    await note_service.restore(note_id, principal)


@router.delete("/notes/{note_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note_permanently(
    note_id: UUID,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    note_service = NoteCommandService(session)
    await note_service.delete_permanently(note_id, principal)


@router.get("/notes/{note_id}/revisions", response_model=NoteRevisionListResponse)
async def list_revisions(
    note_id: UUID,
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    revision_service = NoteRevisionService(session)
    return await revision_service.find_revisions(note_id, page)


@router.get("/notes/{note_id}/revisions/{revision}", response_model=NoteRevisionResponse)
async def get_revision(
    note_id: UUID,
    revision: int,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    revision_service = NoteRevisionService(session)
    return await revision_service.find_revision(note_id, revision)


@router.post("/notes/{note_id}/revisions/{revision}/restore", response_model=NoteResponse)
async def restore_revision(
    note_id: UUID,
    revision: int,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    revision_service = NoteRevisionService(session)
    return await revision_service.restore_revision(note_id, revision, principal)


@router.post("/notes/{note_id}/share", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def share_note(
    note_id: UUID,
    request: ShareRequest,
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = NoteShareService(session)
    return await sharing_service.create(note_id, request, principal)


@router.get("/notes/{note_id}/share", response_model=ShareListResponse)
async def list_note_shares(
    note_id: UUID,
    criteria: ShareCriteria = Depends(share_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = NoteShareService(session)
    return await sharing_service.list_for_note(note_id, criteria, page)


# --- users ---------------------------------------------------------------------------

@router.get("/users/search", response_model=UserSearchListResponse)
async def search_users(
    q: Optional[str] = Query(None, description="Username fragment"),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Case-insensitive username search."""
    auth_service = AuthService(session)
    return await auth_service.search_users(q, page)
