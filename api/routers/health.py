"""Health check endpoints."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.config import Settings, get_settings
from api.dependencies import get_level_store

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic liveness check.

    Returns 200 if the service is running.
    """
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }


@router.get("/health/ready")
async def readiness_check(
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """
    Readiness check.

    Checks:
    - Level storage loads
    - Pump configuration file is present
    """
    checks = {}

    try:
        levels = get_level_store().get()
        checks["level_storage"] = {"status": "ok", "pumps": len(levels)}
    except Exception as e:
        checks["level_storage"] = {"status": "error", "message": str(e)}

    if settings.pump_config_path.exists():
        checks["pump_config"] = {"status": "ok"}
    else:
        checks["pump_config"] = {"status": "not_configured"}

    all_ok = all(c.get("status") in ("ok", "not_configured") for c in checks.values())

    return {
        "status": "ready" if all_ok else "degraded",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": settings.app_version,
        "checks": checks
    }


@router.get("/health/info")
async def service_info(
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """Return service information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": "development" if settings.debug else "production",
    }
