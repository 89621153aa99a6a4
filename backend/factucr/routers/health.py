"""Health check endpoints for load balancers and monitoring."""

from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from factucr.config import settings
from factucr.database import engine
from factucr.utils.redis_client import get_redis

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Lightweight liveness check (no DB/Redis round trip)."""
    return {
        "status": "ok",
        "service": "FactuCR",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness check: the database must answer; Redis is reported only.

    Rate limiting fails open, so a Redis outage degrades but does not
    take the service out of rotation.
    """
    checks = {"service": "ok", "database": "unknown", "redis": "unknown"}
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        redis_client = await get_redis()
        await redis_client.ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"degraded: {str(e)[:100]}"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "FactuCR",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
