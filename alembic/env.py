from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from notevault.config import get_settings
from notevault.core.models import BaseModel

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# every model is registered through notevault.core.models
target_metadata = BaseModel.metadata


def _database_url() -> str:
    """alembic.ini wins when set, otherwise the app settings (DATABASE_URL / .env)."""
    url = config.get_main_option("sqlalchemy.url")
    if not url:
        url = get_settings().database_url
    if not url.startswith("postgresql"):
        raise ValueError(f"Only PostgreSQL is supported. Got: {url}")
    return url


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with a bound connection (sync)."""
    context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations(url: str) -> None:
    """Run migrations for an async engine."""
    connectable: AsyncEngine = create_async_engine(url, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    url = _database_url()

    if url.startswith("postgresql+asyncpg"):
        import asyncio
        asyncio.run(run_async_migrations(url))
    else:
        # sync PostgreSQL drivers
        connectable = engine_from_config(
            {"sqlalchemy.url": url},
            prefix="sqlalchemy.",
            poolclass=pool.NullPool,
        )
        with connectable.connect() as connection:
            do_run_migrations(connection)


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        compare_server_default=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
