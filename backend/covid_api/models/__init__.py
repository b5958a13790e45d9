# Pydantic models for API request/response
from .common import PaginationMeta, DataResponse, ListResponse, CreatedResponse

__all__ = [
    "PaginationMeta",
    "DataResponse",
    "ListResponse",
    "CreatedResponse",
]
