"""
Health Check Endpoints

- /health        - liveness (mounted at the root by main.py)
- /health/live   - liveness under /api/v1
- /health/ready  - readiness: database reachable, Redis reachable when configured
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any
import asyncio
import time

from app.core.config import settings
from app.core.logging_config import logger


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the schema exists"""
    start = time.time()
    try:
        from app.core.database import get_session_local
        from sqlalchemy import text

        session_factory = get_session_local()
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))

            try:
                await session.execute(text("SELECT COUNT(*) FROM users"))
                tables_ok = True
            except Exception:
                tables_ok = False

            latency = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "latency_ms": round(latency, 2),
                "tables_ready": tables_ok,
            }
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "tables_ready": False,
            "error": str(e),
        }


async def check_redis() -> Dict[str, Any]:
    """Check Redis (rate limit storage). Skipped when REDIS_URL is unset."""
    if not settings.REDIS_URL:
        return {"status": "skipped", "message": "REDIS_URL not configured, using in-memory rate limits"}

    start = time.time()
    try:
        import redis.asyncio as redis

        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        try:
            await client.ping()
        finally:
            await client.aclose()

        latency = (time.time() - start) * 1000
        return {"status": "healthy", "latency_ms": round(latency, 2)}
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.warning(f"[HealthCheck] Redis check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "error": str(e),
        }


def liveness_payload() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/live")
async def liveness_check():
    return liveness_payload()


@router.get("/ready")
async def readiness_check():
    """
    Readiness probe.

    503 unless the database answers and the tables exist. A configured but
    unreachable Redis also fails readiness since rate limiting depends on it.
    """
    db_check, redis_check = await asyncio.gather(
        check_database(),
        check_redis(),
        return_exceptions=True
    )

    if isinstance(db_check, Exception):
        db_check = {"status": "unhealthy", "error": str(db_check)}
    if isinstance(redis_check, Exception):
        redis_check = {"status": "unhealthy", "error": str(redis_check)}

    is_ready = (
        db_check.get("status") == "healthy"
        and db_check.get("tables_ready", False)
        and redis_check.get("status") in ("healthy", "skipped")
    )

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {
            "database": db_check,
            "redis": redis_check,
        },
    }
    return JSONResponse(status_code=200 if is_ready else 503, content=response)
