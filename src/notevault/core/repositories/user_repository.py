"""User repository for database operations."""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.user import Authority, User
from .pagination import PageRequest, fetch_page


class UserRepository:
    """Repository for user and authority lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        return select(User).options(selectinload(User.authorities))

    async def add(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.session.execute(self._select().where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Username lookup; callers pass the normalized form."""
        result = await self.session.execute(self._select().where(User.username == username))
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.username == username))
        return result.first() is not None

    async def exists_by_email(self, email: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.email == email))
        return result.first() is not None

    async def search_by_username(self, query: Optional[str], page: PageRequest) -> Tuple[List[User], int]:
        """Case-insensitive "contains" search, ordered by username."""
        stmt = select(User).order_by(User.username.asc())
        if query and query.strip():
            stmt = stmt.where(
                func.lower(User.username).contains(query.strip().lower(), autoescape=True)
            )
        return await fetch_page(self.session, stmt, page)

    async def get_authority(self, name: str) -> Optional[Authority]:
        result = await self.session.execute(select(Authority).where(Authority.name == name))
        return result.scalar_one_or_none()
