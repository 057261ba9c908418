"""Health check endpoints for monitoring."""

import logging

from fastapi import APIRouter

from app.api.deps import StorageDep
from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _storage_ready(storage) -> bool:
    try:
        return await storage.ping()
    except Exception as exc:
        logger.warning("Storage health check failed: %s", exc)
        return False


@router.get("/health")
async def health_check(storage: StorageDep):
    """Health check endpoint for load balancers and monitoring."""
    ready = await _storage_ready(storage)
    return {
        "status": "ok" if ready else "degraded",
        "service": settings.APP_NAME,
        "storage": settings.STORAGE_BACKEND if ready else "unavailable",
    }


@router.get("/health/ready")
async def readiness_check(storage: StorageDep):
    """Kubernetes readiness probe."""
    return {"ready": await _storage_ready(storage)}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe."""
    return {"alive": True}
