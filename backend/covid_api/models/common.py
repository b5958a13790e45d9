"""Common response envelopes."""
from typing import Any, Optional

from pydantic import BaseModel, Field

# Largest value an SQLite INTEGER column can hold
SQLITE_MAX_INT = 2**63 - 1


class PaginationMeta(BaseModel):
    """Limit/offset pagination metadata."""

    limit: int = Field(..., description="Page size")
    offset: int = Field(..., description="Rows skipped")
    has_more: bool = Field(..., description="Whether more rows follow this page")


class DataResponse(BaseModel):
    """Success envelope around an aggregate payload."""

    success: bool = True
    data: Any = None


class ListResponse(BaseModel):
    """Success envelope around a list payload."""

    success: bool = True
    data: list[Any] = Field(default_factory=list)
    total: int = 0
    pagination: Optional[PaginationMeta] = None


class CreatedResponse(BaseModel):
    """Returned by create and update endpoints."""

    success: bool = True
    message: str
    data: dict = Field(default_factory=dict)
