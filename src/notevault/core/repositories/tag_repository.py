"""Tag repository for database operations."""

from typing import List, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tag import Tag, note_tags
from .pagination import PageRequest, fetch_page


class TagRepository:
    """Repository for tag database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_names(self, names: Sequence[str]) -> List[Tag]:
        if not names:
            return []
        result = await self.session.execute(select(Tag).where(Tag.name.in_(list(names))))
        return list(result.scalars().all())

    async def add(self, name: str) -> Tag:
        """Insert one tag inside its own savepoint.

        Raises ``IntegrityError`` if another transaction created it first; only
        this savepoint is rolled back and the outer transaction survives.
        """
        tag = Tag(name=name)
        async with self.session.begin_nested():
            self.session.add(tag)
        return tag

    async def find_orphan_ids(self) -> List:
        used = select(note_tags.c.tag_id)
        result = await self.session.execute(select(Tag.id).where(Tag.id.not_in(used)))
        return list(result.scalars().all())

    async def delete_by_ids(self, tag_ids: Sequence) -> int:
        if not tag_ids:
            return 0
        result = await self.session.execute(
            delete(Tag).where(Tag.id.in_(list(tag_ids))).execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def find_by_prefix(self, prefix: str, page: PageRequest) -> Tuple[List[Tag], int]:
        """Tags starting with ``prefix`` (all tags when blank), by name."""
        stmt = select(Tag).order_by(Tag.name.asc())
        prefix = Tag.normalize_name(prefix or "")
        if prefix:
            stmt = stmt.where(Tag.name.startswith(prefix, autoescape=True))
        return await fetch_page(self.session, stmt, page)
