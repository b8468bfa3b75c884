"""
Health check endpoints
"""

from typing import Any
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import settings
from app.core.database import db_manager
from app.core.metrics import HealthChecker, metrics_collector
from app.core.redis import redis_manager

router = APIRouter()


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "venuely-api", "version": settings.APP_VERSION}


@router.get("/ready")
async def readiness() -> Any:
    """
    Kubernetes readiness probe; not ready only when the database is down
    """
    health = await HealthChecker(redis_manager, db_manager).get_system_health()
    health["bookings"] = await metrics_collector.get_metrics()
    status_code = 503 if health["status"] == "unhealthy" else 200
    return JSONResponse(status_code=status_code, content=health)
