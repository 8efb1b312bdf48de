# Database connection setup
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .config import get_settings
from .core.models import Authority, BaseModel
from .core.models.user import ROLE_ADMIN, ROLE_USER

settings = get_settings()

engine = create_async_engine(settings.database_url, echo=settings.database_echo)

# Session factory; also used for work that must run outside the request's session
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session():
    """Request-scoped session; services commit, anything left over is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def seed_authorities(session: AsyncSession) -> None:
    """Make sure the built-in roles exist."""
    existing = set((await session.execute(select(Authority.name))).scalars().all())
    for name in (ROLE_ADMIN, ROLE_USER):
        if name not in existing:
            session.add(Authority(name=name))
    await session.commit()


async def create_tables():
    """Create all tables and seed reference data."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)
    async with AsyncSessionLocal() as session:
        await seed_authorities(session)
