"""
Health check router for liveness and readiness probes.
"""
from fastapi import APIRouter, status

from mockapi.dependencies.store import StoreDep

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the API is running.
    """
    return {"status": "healthy"}


@router.get(
    "/health/ready",
    status_code=status.HTTP_200_OK,
    summary="Readiness check of the store",
)
async def readiness_check(store: StoreDep):
    """
    Readiness check that reports store and snapshot state.
    Storage is "degraded" while the last snapshot write has not succeeded.
    """
    checks = {
        "api": "healthy",
        "store": "healthy" if store.initialized else "not initialized",
        "storage": "in-memory",
    }

    if store.storage_path is not None:
        checks["storage"] = "unhealthy: pending snapshot write" if store.dirty else "healthy"

    all_healthy = all(v in ("healthy", "in-memory") for v in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
        "resources": store.resources,
    }
