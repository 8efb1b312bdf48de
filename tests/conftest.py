"""Shared pytest fixtures configured to use a per-test SQLite database."""

import asyncio
import fnmatch
import logging
import os
from typing import Dict, Optional
from uuid import uuid4

# configure before anything imports notevault.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["NOTEVAULT_SKIP_LIFESPAN_DB"] = "1"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from notevault import database
from notevault.core.cache import CacheProvider
from notevault.core.models.base import BaseModel
from notevault.core.models.user import ROLE_ADMIN, ROLE_USER, User
from notevault.core.redis_client import RedisClient
from notevault.core.repositories.user_repository import UserRepository
from notevault.core.services import tag_service as tag_service_module
from notevault.database import get_db_session, seed_authorities
from notevault.main import app
from notevault.security.jwt import create_token_for_user
from notevault.security.password import hash_password
from notevault.security.principal import UserPrincipal

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)

TEST_PASSWORD = "Secret123!"


class FakeRedisClient(RedisClient):
    """In-memory stand-in that behaves like a connected RedisClient."""

    def __init__(self):
        super().__init__()
        self.storage: Dict[str, str] = {}

    @property
    def connected(self) -> bool:
        return True

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[str]:
        return self.storage.get(key)

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        self.storage[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.storage.pop(key, None) is not None)

    async def delete_pattern(self, pattern: str) -> int:
        return await self.delete(*[key for key in self.storage if fnmatch.fnmatch(key, pattern)])

    async def exists(self, key: str) -> bool:
        return key in self.storage


async def drain_background_tasks() -> None:
    """Wait for fire-and-forget cleanups so assertions see their effect."""
    while tag_service_module._background_tasks:
        await asyncio.gather(*list(tag_service_module._background_tasks), return_exceptions=True)


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database file per test; every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'notevault.db'}", echo=False)

    # Ensure SQLite enforces foreign key constraints (required for CASCADE)
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await drain_background_tasks()
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine, monkeypatch):
    """Session factory bound to the test engine, also used for background work."""
    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "AsyncSessionLocal", factory)
    return factory


@pytest.fixture
async def test_session(session_factory):
    async with session_factory() as session:
        await seed_authorities(session)
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def fake_redis(monkeypatch):
    """Connected in-memory Redis shared by caches and the token blacklist."""
    client = FakeRedisClient()
    import notevault.core.redis_client as redis_module

    monkeypatch.setattr(redis_module, "_redis_client", client)
    return client


@pytest.fixture
def cache(fake_redis):
    return CacheProvider(redis_client=fake_redis)


@pytest.fixture
def test_app(session_factory, test_session):
    """FastAPI app whose requests each get their own session on the test engine."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    """Async client; background tasks are drained after every response."""

    async def _drain(response):
        await drain_background_tasks()

    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        event_hooks={"response": [_drain]},
    ) as ac:
        yield ac


async def create_user(session, username: str, authorities=(ROLE_USER,), enabled: bool = True) -> User:
    repo = UserRepository(session)
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        enabled=enabled,
        authorities=[await repo.get_authority(name) for name in authorities],
    )
    await repo.add(user)
    await session.commit()
    return user


def principal_for(user: User) -> UserPrincipal:
    return UserPrincipal(
        user_id=user.id,
        username=user.username,
        authorities=frozenset(user.authority_names),
    )


def auth_headers_for(user: User) -> Dict[str, str]:
    token, _ = create_token_for_user(user.username, user.id, user.authority_names)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def alice(test_session):
    return await create_user(test_session, "alice")


@pytest.fixture
async def bob(test_session):
    return await create_user(test_session, "bob")


@pytest.fixture
async def admin(test_session):
    return await create_user(test_session, "admin", authorities=(ROLE_USER, ROLE_ADMIN))


@pytest.fixture
def alice_principal(alice):
    return principal_for(alice)


@pytest.fixture
def bob_principal(bob):
    return principal_for(bob)


@pytest.fixture
def admin_principal(admin):
    return principal_for(admin)


@pytest.fixture
def alice_headers(alice):
    return auth_headers_for(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_headers_for(bob)


@pytest.fixture
def admin_headers(admin):
    return auth_headers_for(admin)


@pytest.fixture
def note_payload():
    return {
        "title": f"Note {uuid4().hex[:6]}",
        "content": "Some note content long enough",
        "pinned": False,
        "tags": ["work", "ideas"],
    }


@pytest.fixture
def make_user(test_session):
    async def _make(username: str, authorities=(ROLE_USER,), enabled: bool = True) -> User:
        return await create_user(test_session, username, authorities, enabled)

    return _make


@pytest.fixture
def user_password():
    return TEST_PASSWORD


@pytest.fixture
def drain_tasks():
    return drain_background_tasks
