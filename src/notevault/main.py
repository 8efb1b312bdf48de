# Main application entry point
import asyncio
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import (
    admin_router,
    auth_router,
    health_router,
    notes_router,
    sharing_router,
    tags_router,
)
from .config import get_settings
from .core.exceptions import register_exception_handlers
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import get_redis_client
from .core.services.token_cleanup_service import run_token_cleanup
from .database import create_tables

# Setup logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting NoteVault application",
        extra={"version": settings.app_version, "environment": settings.environment, "debug": settings.debug},
    )

    # Redis is optional: caches and the token blacklist become no-ops without it
    redis_client = get_redis_client()
    try:
        await redis_client.connect()
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without Redis...")

    # tests run against their own in-memory engine
    if os.getenv("NOTEVAULT_SKIP_LIFESPAN_DB") == "1":
        logger.info("Skipping DB table creation due to NOTEVAULT_SKIP_LIFESPAN_DB=1")
    else:
        try:
            await create_tables()
            logger.info("Database tables created/verified")
        except Exception as e:
            logger.error("Failed to create database tables", exc_info=e)
            raise

    cleanup_task = None
    if settings.token_cleanup_interval_minutes > 0:
        cleanup_task = asyncio.create_task(
            run_token_cleanup(settings.token_cleanup_interval_minutes * 60), name="token-cleanup"
        )

    yield

    logger.info("Shutting down NoteVault application")
    if cleanup_task is not None:
        cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cleanup_task
    await redis_client.disconnect()


app = FastAPI(
    title=settings.app_name,
    description="Notes with tags, trash, revision history and share links",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# sharing first: its /notes/share routes must win over /notes/{note_id}
app.include_router(auth_router, prefix="/api")
app.include_router(sharing_router, prefix="/api")
app.include_router(notes_router, prefix="/api")
app.include_router(tags_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(health_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": settings.app_name, "version": settings.app_version, "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("notevault.main:app", host=settings.host, port=settings.port, reload=settings.reload)
