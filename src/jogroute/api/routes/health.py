"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_directions_health_check():
    """Lazy import to avoid startup failures."""
    if settings.directions_provider == "osrm":
        from ...services.directions.osrm import check_health
    else:
        from ...services.directions.google import check_health
    return check_health


@router.get("/health/directions", status_code=status.HTTP_200_OK)
def health_directions() -> dict:
    """Check directions provider health."""
    try:
        check_health = _get_directions_health_check()
        return {"service": settings.directions_provider, "healthy": check_health()}
    except Exception as e:
        return {"service": settings.directions_provider, "healthy": False, "error": str(e)}
