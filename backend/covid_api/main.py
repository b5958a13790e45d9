"""
Kosovo COVID-19 Tracking API

REST API for daily cases, vaccinations, hospital capacity and testing
across the seven Kosovo regions, with a background scheduler that keeps
the simulated feeds and derived statistics current.

Run with: uvicorn covid_api.main:app --port 3000 --reload
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from .config import settings

# Configure structured logging FIRST (before any logger calls)
from .middleware.structlog_config import configure as configure_logging
configure_logging(settings.LOG_LEVEL)

import structlog
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from . import __version__
from .dependencies import verify_database_exists
from .middleware import RequestLoggingMiddleware, register_error_handlers
from .routers import (
    cases_router,
    health_router,
    hospitals_router,
    regions_router,
    statistics_router,
    testing_router,
    vaccinations_router,
)
from .schema import initialize_database
from .services.automation import AutomationService

logger = structlog.get_logger("covid.api")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_string()],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: schema, automation. Shutdown: stop the scheduler."""
    if settings.INIT_DB_ON_STARTUP:
        if not initialize_database():
            logger.error("startup_check_failed", check="initialize_database")
    elif not verify_database_exists():
        logger.warning("startup_check_warning", issue="database file missing", path=str(settings.DATABASE_PATH))

    automation = AutomationService()
    app.state.automation = automation
    if settings.ENABLE_AUTO_UPDATES:
        automation.start()
    else:
        logger.info("automation_disabled")

    logger.info("server_started", environment=settings.ENVIRONMENT, port=settings.PORT)
    yield
    automation.stop()
    logger.info("server_stopped")


API_TITLE = "Kosovo COVID-19 Tracking API"
API_DESCRIPTION = """
Daily COVID-19 statistics for Kosovo.

### Core Endpoints

- **Cases** - Daily case records, summaries and trends
- **Vaccinations** - Doses, coverage and per-vaccine breakdown
- **Hospitals** - Bed, ICU and ventilator capacity
- **Regions** - Regional statistics and comparisons
- **Testing** - Testing centers and positivity
- **Statistics** - National overview, trends and demographics
- **Health** - Service, database, automation and data freshness
"""
API_VERSION = __version__

app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
    lifespan=lifespan,
)

# Register global error handlers
register_error_handlers(app)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Request logging middleware (must be added before CORS/GZip so it wraps them)
app.add_middleware(RequestLoggingMiddleware)

cors_origins = settings.cors_origins()
if "*" in cors_origins:
    logger.warning("Wildcard CORS origin rejected for security; falling back to localhost defaults")
    cors_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Request-ID"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["X-XSS-Protection"] = "0"
    if request.headers.get("x-forwarded-proto") == "https":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response

# GZip compression for responses > 1KB
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(cases_router, prefix="/api/v1")
app.include_router(vaccinations_router, prefix="/api/v1")
app.include_router(hospitals_router, prefix="/api/v1")
app.include_router(regions_router, prefix="/api/v1")
app.include_router(testing_router, prefix="/api/v1")
app.include_router(statistics_router, prefix="/api/v1")
app.include_router(health_router, prefix="/api/v1")


@app.get("/", tags=["root"])
async def root():
    """API root - returns basic info and links."""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs" if settings.ENABLE_DOCS else None,
        "endpoints": {
            "cases": "/api/v1/cases",
            "cases_latest": "/api/v1/cases/latest",
            "cases_summary": "/api/v1/cases/summary",
            "cases_trends": "/api/v1/cases/trends",
            "cases_by_region": "/api/v1/cases/by-region",
            "vaccinations": "/api/v1/vaccinations",
            "vaccinations_summary": "/api/v1/vaccinations/summary",
            "vaccinations_progress": "/api/v1/vaccinations/progress",
            "vaccinations_coverage": "/api/v1/vaccinations/coverage",
            "hospitals": "/api/v1/hospitals",
            "hospitals_capacity": "/api/v1/hospitals/capacity",
            "regions": "/api/v1/regions",
            "regions_comparison": "/api/v1/regions/comparison",
            "testing_centers": "/api/v1/testing/centers",
            "testing_data": "/api/v1/testing/data",
            "testing_summary": "/api/v1/testing/summary",
            "statistics_overview": "/api/v1/statistics/overview",
            "statistics_trends": "/api/v1/statistics/trends",
            "statistics_regional": "/api/v1/statistics/regional",
            "statistics_demographics": "/api/v1/statistics/demographics",
            "statistics_comparison": "/api/v1/statistics/comparison",
            "health": "/api/v1/health",
            "health_database": "/api/v1/health/database",
            "health_automation": "/api/v1/health/automation",
            "health_metrics": "/api/v1/health/metrics",
            "health_data_freshness": "/api/v1/health/data-freshness",
        },
    }


# Main entry point
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
