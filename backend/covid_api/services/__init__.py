"""
Service layer for the Kosovo COVID-19 API.

Domain services own the SQL and the derived metrics. Routers stay thin:
parse request, call service, wrap the result in the response envelope.
"""
from .query_builder import QueryBuilder
from .pagination import paginate_query, PaginatedResult
from .case_service import case_service
from .vaccination_service import vaccination_service
from .hospital_service import hospital_service
from .region_service import region_service
from .testing_service import testing_service
from .statistics_service import statistics_service
from .health_service import health_service

__all__ = [
    "QueryBuilder",
    "paginate_query",
    "PaginatedResult",
    "case_service",
    "vaccination_service",
    "hospital_service",
    "region_service",
    "testing_service",
    "statistics_service",
    "health_service",
]
