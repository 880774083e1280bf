from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging

from app.core.config import settings
from app.core.redis import redis_manager
from app.core.database import database_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    """Basic liveness check"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@router.get("/database")
async def database_health():
    """Database and Redis connectivity; Redis is optional when caching is off"""
    health_status = {
        "database": False,
        "redis": False,
        "overall": False,
        "details": {}
    }

    db_status = await database_service.health_check()
    health_status["database"] = db_status["status"] == "healthy"
    health_status["details"]["database"] = db_status["message"]

    if not settings.cache_enabled:
        health_status["details"]["redis"] = "Cache disabled"
    elif await redis_manager.ping():
        health_status["redis"] = True
        health_status["details"]["redis"] = "Connection OK"
    else:
        health_status["details"]["redis"] = "Connection unavailable"

    health_status["overall"] = health_status["database"] and (
        health_status["redis"] or not settings.cache_enabled
    )

    if not health_status["overall"]:
        logger.warning(f"Health check failed: {health_status['details']}")
        return JSONResponse(status_code=503, content=health_status)

    return health_status
