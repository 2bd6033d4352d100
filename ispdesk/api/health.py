from fastapi import APIRouter, Request

from ..config import get_settings
from ..utils.cache import cache_manager

router = APIRouter()


@router.get("/health", tags=["System"])
def get_system_health(request: Request):
    """
    Returns the system health status including:
    - RouterOS driver (real API or synthetic data only)
    - Billing scheduler state
    - Entry counts of the live router response caches
    """
    settings = get_settings()
    scheduler = getattr(request.app.state, "scheduler", None)

    return {
        "status": "ok",
        "routeros_driver": settings.routeros_driver,
        "using_real_api": settings.driver_enabled,
        "scheduler_running": bool(scheduler and scheduler.running),
        "cache": cache_manager.get_stats(),
    }
