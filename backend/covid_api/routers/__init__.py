# API routers
from .cases import router as cases_router
from .vaccinations import router as vaccinations_router
from .hospitals import router as hospitals_router
from .regions import router as regions_router
from .testing import router as testing_router
from .statistics import router as statistics_router
from .health import router as health_router

__all__ = [
    "cases_router",
    "vaccinations_router",
    "hospitals_router",
    "regions_router",
    "testing_router",
    "statistics_router",
    "health_router",
]
