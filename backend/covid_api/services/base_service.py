"""
BaseService: shared query helpers for the domain services.

Gateway failures are turned into StorageError here, so the services
above only deal with rows.
"""
from __future__ import annotations

from typing import Any, Callable, Sequence

import structlog

from ..cache import STATISTICS_CACHE, app_cache
from ..dependencies import QueryResult, execute_query
from ..middleware.error_handler import ConflictError, StorageError, ValidationFailedError
from .pagination import PaginatedResult, paginate_query
from .query_builder import QueryBuilder

logger = structlog.get_logger("covid.services")


class BaseService:
    """Base class for domain services."""

    @staticmethod
    def _raise_storage_error(result: QueryResult) -> None:
        raise StorageError(result.error or "Database operation failed")

    def _run(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute a statement; raise StorageError if the gateway failed."""
        result = execute_query(sql, params)
        if not result.success:
            self._raise_storage_error(result)
        return result

    def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict]:
        return self._run(sql, params).data

    def _fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict | None:
        return self._run(sql, params).first()

    def _paginated_list(
        self,
        qb: QueryBuilder,
        columns: str,
        limit: int,
        offset: int,
        row_mapper: Callable[[dict], dict] | None = None,
    ) -> PaginatedResult:
        return paginate_query(
            qb, columns, limit, offset, row_mapper, on_error=self._raise_storage_error
        )

    def _write(self, sql: str, params: Sequence[Any] = (), conflict_message: str | None = None) -> QueryResult:
        """Execute an INSERT/UPDATE, mapping constraint failures to client errors.

        A successful write drops the cached statistics overview.
        """
        result = execute_query(sql, params)
        if result.success:
            app_cache.invalidate(STATISTICS_CACHE)
            return result
        error = result.error or ""
        if "UNIQUE constraint failed" in error:
            raise ConflictError(conflict_message or "Record already exists")
        if "FOREIGN KEY constraint failed" in error:
            raise ValidationFailedError(
                "Validation failed", details=["Referenced region, municipality or center does not exist"]
            )
        self._raise_storage_error(result)
