"""
API router for service health and diagnostics.

Endpoints return 503 instead of raising when a dependency is down, so
load balancers and uptime checks can read the body either way.
"""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..cache import AUTOMATION_CACHE, MOVING_AVERAGES_KEY, app_cache
from ..config import settings
from ..services.health_service import health_service, memory_usage_mb

router = APIRouter(prefix="/health", tags=["health"])


def _automation_status(request: Request) -> dict:
    automation = getattr(request.app.state, "automation", None)
    if automation is None:
        return {"running": False, "active_jobs": [], "job_count": 0, "schedules": {}}
    return automation.status()


@router.get("")
def health(request: Request):
    """Overall status: healthy when the database answers."""
    connected = health_service.database_connected()
    content = {
        "success": connected,
        "status": "healthy" if connected else "unhealthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "uptime_seconds": health_service.uptime_seconds(),
        "database": {
            "status": "connected" if connected else "disconnected",
            "tables": health_service.table_counts() if connected else {},
        },
        "automation": _automation_status(request),
        "memory_mb": memory_usage_mb(),
    }
    return JSONResponse(status_code=200 if connected else 503, content=content)


@router.get("/database")
def database_health():
    connected = health_service.database_connected()
    if not connected:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "status": "unhealthy",
                "database": {"status": "disconnected", "path": str(settings.DATABASE_PATH)},
            },
        )
    return {
        "success": True,
        "status": "healthy",
        "database": {
            "status": "connected",
            "sqlite_version": health_service.sqlite_version(),
            "tables": health_service.table_details(),
        },
    }


@router.get("/automation")
def automation_health(request: Request):
    """Scheduler state, data-source freshness and the latest cached moving averages."""
    status = _automation_status(request)
    automation = getattr(request.app.state, "automation", None)
    content = {
        "success": status["running"],
        "status": "running" if status["running"] else "stopped",
        "automation": status,
        "auto_updates_enabled": settings.ENABLE_AUTO_UPDATES,
        "last_runs": automation.last_runs if automation is not None else {},
        "data_sources": health_service.data_sources(),
        "moving_averages": app_cache.get(AUTOMATION_CACHE, MOVING_AVERAGES_KEY),
    }
    return JSONResponse(status_code=200 if status["running"] else 503, content=content)


@router.get("/metrics")
def metrics():
    return {
        "success": True,
        "uptime_seconds": health_service.uptime_seconds(),
        "process": health_service.process_info(),
        "activity": health_service.recent_activity(),
        "rate_limit": {
            "enabled": settings.RATE_LIMIT_ENABLED,
            "window_ms": settings.RATE_LIMIT_WINDOW_MS,
            "max_requests": settings.RATE_LIMIT_MAX_REQUESTS,
        },
        "cache": app_cache.stats(),
    }


@router.get("/data-freshness")
def data_freshness():
    """Per-table freshness buckets: fresh under 24h, stale under 72h."""
    return {"success": True, **health_service.data_freshness()}
