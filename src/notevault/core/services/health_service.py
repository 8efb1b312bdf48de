"""Health service implementation."""

import time
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ..logging import get_logger
from ..redis_client import RedisClient, get_redis_client
from ..schemas.common import HealthCheckResponse
from .interfaces import IHealthService

logger = get_logger("services.health")


class HealthService(IHealthService):
    """Database and Redis status.

    The database is required; Redis only backs caches and the token
    blacklist, so losing it degrades the service instead of failing it.
    """

    def __init__(self, session: AsyncSession, redis_client: Optional[RedisClient] = None):
        self.session = session
        self.redis = redis_client or get_redis_client()
        self.settings = get_settings()

    async def get_health_status(self) -> HealthCheckResponse:
        db_health = await self.check_database_health()
        redis_health = await self.check_redis_health()

        if not db_health["connected"]:
            overall_status = "unhealthy"
        elif not redis_health["connected"]:
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return HealthCheckResponse(
            status=overall_status,
            version=self.settings.app_version,
            checks={"database": db_health, "redis": redis_health},
        )

    async def check_database_health(self) -> Dict[str, Any]:
        start = time.perf_counter()
        try:
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()
        except SQLAlchemyError as e:
            logger.error("Database health check failed: %s", e)
            return {"connected": False, "status": "unhealthy", "error": str(e)}

        return {
            "connected": True,
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
        }

    async def check_redis_health(self) -> Dict[str, Any]:
        start = time.perf_counter()
        if not await self.redis.ping():
            return {"connected": False, "status": "unavailable"}
        return {
            "connected": True,
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
        }
