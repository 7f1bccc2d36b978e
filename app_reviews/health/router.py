"""Health check endpoints."""

from fastapi import APIRouter, Request

from app_reviews.config import get_settings
from app_reviews.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - services wired and which backends they use."""
    settings = get_settings()
    services_ready = getattr(request.app.state, "review_service", None) is not None
    return {
        "status": "ready" if services_ready else "degraded",
        "environment": settings.environment,
        "storage_backend": settings.storage_backend,
        "redis": get_redis() is not None,
        "debug": settings.debug,
    }


@router.get("")
async def health(request: Request) -> dict[str, str | int]:
    """General health check endpoint."""
    settings = get_settings()
    hub = getattr(request.app.state, "notification_hub", None)
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "connections": hub.connection_count if hub else 0,
    }
