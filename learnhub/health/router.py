"""Health check endpoints."""

from fastapi import APIRouter, Request

from learnhub.config import get_settings
from learnhub.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - the engines need Cassandra; Redis is optional."""
    settings = get_settings()
    cassandra_ready = getattr(request.app.state, "cassandra_session", None) is not None
    return {
        "status": "ready" if cassandra_ready else "degraded",
        "cassandra": cassandra_ready,
        "redis": get_redis() is not None,
        "environment": settings.environment,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
