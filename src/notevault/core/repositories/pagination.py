"""Paging helpers shared by the repositories."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class PageRequest:
    """1-based page plus ``field,dir`` sort expressions."""

    page: int = 1
    per_page: int = 20
    sort: List[str] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def parse_sort(sort: Sequence[str], columns: Dict[str, Any]) -> List[Any]:
    """Turn ``["title,asc", "created_at"]`` into ORDER BY clauses.

    Unknown fields are ignored; direction defaults to ascending.
    """
    clauses = []
    for expression in sort or ():
        name, _, direction = expression.partition(",")
        column = columns.get(name.strip())
        if column is None:
            continue
        clauses.append(column.desc() if direction.strip().lower() == "desc" else column.asc())
    return clauses


async def fetch_page(session: AsyncSession, stmt: Select, page: PageRequest) -> Tuple[List[Any], int]:
    """Run ``stmt`` for one page and count the full result."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()
    if total == 0:
        return [], 0

    result = await session.execute(stmt.limit(page.per_page).offset(page.offset))
    return list(result.scalars().unique().all()), total
