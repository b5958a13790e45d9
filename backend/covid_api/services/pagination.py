"""
Limit/offset pagination for list endpoints.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from ..dependencies import QueryResult, execute_query
from .query_builder import QueryBuilder

MAX_LIMIT = 1000


@dataclass
class PaginatedResult:
    """A page of rows plus the unpaged total."""
    data: list[dict] = field(default_factory=list)
    total: int = 0
    pagination: dict = field(default_factory=dict)


def paginate_query(
    qb: QueryBuilder,
    columns: str,
    limit: int,
    offset: int,
    row_mapper: Callable[[dict], dict] | None = None,
    on_error: Callable[[QueryResult], None] | None = None,
) -> PaginatedResult:
    """
    Run the count and the paged select for a filtered QueryBuilder.

    Args:
        qb: QueryBuilder with filters and ordering applied
        columns: SELECT column list
        limit: Page size, clamped to 1..MAX_LIMIT
        offset: Rows to skip
        row_mapper: Optional per-row transform
        on_error: Called with a failed QueryResult; expected to raise
    """
    limit = max(1, min(limit, MAX_LIMIT))
    offset = max(0, offset)

    count_sql, count_params = qb.build_count()
    count_result = execute_query(count_sql, count_params)
    if not count_result.success and on_error:
        on_error(count_result)
    first = count_result.first()
    total = first["total"] if first else 0

    qb.limit(limit, offset)
    data_sql, data_params = qb.build_select(columns)
    data_result = execute_query(data_sql, data_params)
    if not data_result.success and on_error:
        on_error(data_result)

    mapper = row_mapper or (lambda row: row)
    data = [mapper(row) for row in data_result.data]

    return PaginatedResult(
        data=data,
        total=total,
        pagination={
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(data) < total,
        },
    )
