"""
Health checks for the readiness probe (database and Redis).

Liveness does not touch dependencies; readiness pings each one and reports
"ok" or a filtered error string that does not leak connection details.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from redis.exceptions import RedisError

from app.core import redis_client
from app.core.logging import get_logger

logger = get_logger(__name__)

_STATUS_HEALTHY = "healthy"
_STATUS_DEGRADED = "degraded"

_CHECK_OK = "ok"

_ERROR_DB = "error: db_unavailable"
_ERROR_REDIS = "error: redis_unavailable"


async def _check_db(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
        return _CHECK_OK
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", extra_data={"error": str(e)})
        return _ERROR_DB


async def _check_redis() -> str:
    try:
        client = await redis_client.get_redis()
        await client.ping()
        return _CHECK_OK
    except (RedisError, OSError) as e:
        logger.warning("Redis health check failed", extra_data={"error": str(e)})
        return _ERROR_REDIS


async def check_readiness(db: AsyncSession) -> dict[str, Any]:
    """
    Returns:
        {"status": "healthy" | "degraded", "db": ..., "redis": ...}
    """
    checks = {
        "db": await _check_db(db),
        "redis": await _check_redis(),
    }

    all_ok = all(v == _CHECK_OK for v in checks.values())
    if not all_ok:
        logger.warning("Readiness check degraded", extra_data=checks)

    return {"status": _STATUS_HEALTHY if all_ok else _STATUS_DEGRADED, **checks}
