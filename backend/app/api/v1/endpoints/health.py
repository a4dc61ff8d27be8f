"""
Health Check Endpoints

- /health/live  - the process is up
- /health/ready - the database answers and the tables exist
"""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, Any
import time

from app.core.config import settings
from app.core.database import get_session_local
from app.core.logging_config import logger
from app.core.types import utcnow


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Connectivity plus a probe of the users table"""
    start = time.time()
    session_factory = get_session_local()
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            try:
                await session.execute(text("SELECT COUNT(*) FROM users"))
                tables_ok = True
            except SQLAlchemyError:
                tables_ok = False
    except SQLAlchemyError as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": type(e).__name__,
        }

    return {
        "status": "healthy",
        "latency_ms": round((time.time() - start) * 1000, 2),
        "tables_ready": tables_ok,
    }


def check_talking_points() -> Dict[str, Any]:
    # Optional feature; never blocks readiness
    return {
        "status": "healthy" if settings.talking_points_enabled else "degraded",
        "configured": settings.talking_points_enabled,
    }


@router.get("/live")
async def liveness_check():
    return {
        "status": "alive",
        "timestamp": utcnow().isoformat(),
        "app": settings.APP_NAME,
    }


@router.get("/ready")
async def readiness_check():
    """200 only when the database is reachable and initialised"""
    db_check = await check_database()
    is_ready = db_check.get("status") == "healthy" and db_check.get("tables_ready", False)

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": utcnow().isoformat(),
        "checks": {
            "database": db_check,
            "talking_points": check_talking_points(),
        },
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response)

    return response
