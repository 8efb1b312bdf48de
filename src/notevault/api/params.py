"""Query parameter dependencies shared by the routers."""

from datetime import datetime
from typing import List, Optional

from fastapi import Query

from ..config import get_settings
from ..core.repositories.pagination import PageRequest
from ..core.schemas.notes import NoteCriteria
from ..core.schemas.sharing import ShareCriteria, ShareStatus


def page_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    per_page: Optional[int] = Query(None, ge=1, le=100, description="Page size"),
    sort: Optional[List[str]] = Query(None, description="Sort as field,asc|desc; repeatable"),
) -> PageRequest:
    settings = get_settings()
    size = min(per_page or settings.default_page_size, settings.max_page_size)
    return PageRequest(page=page, per_page=size, sort=sort or [])


def note_criteria(
    q: Optional[str] = Query(None, description="Title/content search"),
    tags: Optional[List[str]] = Query(None, description="Notes carrying any of these tags"),
    color: Optional[str] = Query(None),
    pinned: Optional[bool] = Query(None),
) -> NoteCriteria:
    return NoteCriteria(query=q, tags=tags, color=color, pinned=pinned)


def share_criteria(
    q: Optional[str] = Query(None, description="Token hash or note title search"),
    status: ShareStatus = Query(ShareStatus.ALL),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
) -> ShareCriteria:
    return ShareCriteria(query=q, status=status, created_from=created_from, created_to=created_to)
