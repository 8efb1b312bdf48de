"""Sharing API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.repositories.pagination import PageRequest
from ..core.schemas.notes import NoteResponse
from ..core.schemas.sharing import ShareCriteria, ShareListResponse, ShareRequest, ShareResponse
from ..core.services import NoteShareService
from ..database import get_db_session
from ..middleware.auth import get_current_principal
from ..security.principal import UserPrincipal
from .params import page_params, share_criteria

router = APIRouter(tags=["sharing"])


# registered ahead of the notes router so /notes/share doesn't hit /notes/{note_id}
@router.get("/notes/share", response_model=ShareListResponse)
async def list_my_shares(
    criteria: ShareCriteria = Depends(share_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Share links on all of the user's notes."""
    sharing_service = NoteShareService(session)
    return await sharing_service.list_all_for_current_user(principal, criteria, page)


@router.delete("/notes/share/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_share(
    token_id: UUID,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke a share link; revoking twice is a no-op."""
    sharing_service = NoteShareService(session)
    await sharing_service.revoke_for_current_user(token_id, principal)


@router.post("/notes/{note_id}/share", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def share_note(
    note_id: UUID,
    request: ShareRequest,
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a share link. The raw token is only returned here."""
    sharing_service = NoteShareService(session)
    return await sharing_service.create_for_current_user(note_id, request, principal)


@router.get("/notes/{note_id}/share", response_model=ShareListResponse)
async def list_note_shares(
    note_id: UUID,
    criteria: ShareCriteria = Depends(share_criteria),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    sharing_service = NoteShareService(session)
    return await sharing_service.list_for_note_for_current_user(note_id, principal, criteria, page)


@router.get("/share/{token}", response_model=NoteResponse)
async def open_shared_note(token: str, session: AsyncSession = Depends(get_db_session)):
    """Public: read a note through a share link."""
    sharing_service = NoteShareService(session)
    return await sharing_service.validate_and_consume(token)
