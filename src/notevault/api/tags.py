"""Tag API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.repositories.pagination import PageRequest
from ..core.schemas.notes import TagListResponse
from ..core.services import TagService
from ..database import get_db_session
from ..middleware.auth import get_current_principal
from ..security.principal import UserPrincipal
from .params import page_params

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/suggest", response_model=TagListResponse)
async def suggest_tags(
    q: Optional[str] = Query(None, description="Tag prefix"),
    page: PageRequest = Depends(page_params),
    principal: UserPrincipal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
):
    """Get tag suggestions based on a prefix."""
    tag_service = TagService(session)
    return await tag_service.suggest(q, page)
