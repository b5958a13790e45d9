"""
QueryBuilder for the list endpoints.

Optional filters are skipped when the caller passed None, so a router can
hand every query parameter straight through. Values always travel as ?
placeholders; ORDER BY clauses are literals written in the services.
"""
from __future__ import annotations

from typing import Any


class QueryBuilder:
    """Accumulates FROM/JOIN/WHERE pieces and renders SELECT or COUNT."""

    def __init__(self, base_table: str):
        # e.g. "covid_cases c"
        self.base_table = base_table
        self._joins: list[str] = []
        self._conditions: list[str] = []
        self._params: list[Any] = []
        self._group_by: str | None = None
        self._order_by: str | None = None
        self._limit: int | None = None
        self._offset: int | None = None

    def join(self, table: str, on: str) -> QueryBuilder:
        self._joins.append(f"JOIN {table} ON {on}")
        return self

    def left_join(self, table: str, on: str) -> QueryBuilder:
        self._joins.append(f"LEFT JOIN {table} ON {on}")
        return self

    def where(self, condition: str, *params: Any) -> QueryBuilder:
        self._conditions.append(condition)
        self._params.extend(params)
        return self

    def filter_equals(self, value: Any, column: str) -> QueryBuilder:
        if value is None:
            return self
        return self.where(f"{column} = ?", value)

    def filter_boolean(self, value: bool | None, column: str) -> QueryBuilder:
        """Flags are stored as 0/1."""
        if value is None:
            return self
        return self.where(f"{column} = ?", 1 if value else 0)

    def filter_date_range(self, start: str | None, end: str | None, column: str = "date") -> QueryBuilder:
        """Inclusive on both ends; ISO dates compare correctly as text."""
        if start is not None:
            self.where(f"{column} >= ?", start)
        if end is not None:
            self.where(f"{column} <= ?", end)
        return self

    def filter_contains(self, value: str | None, column: str) -> QueryBuilder:
        if not value:
            return self
        return self.where(f"{column} LIKE ?", f"%{value}%")

    def group_by(self, clause: str) -> QueryBuilder:
        self._group_by = clause
        return self

    def order_by(self, clause: str) -> QueryBuilder:
        # Trusted, literal clauses only
        self._order_by = clause
        return self

    def limit(self, n: int, offset: int | None = None) -> QueryBuilder:
        self._limit = n
        self._offset = offset
        return self

    def params(self) -> list[Any]:
        return list(self._params)

    def _body(self) -> list[str]:
        body = [f"FROM {self.base_table}", *self._joins]
        if self._conditions:
            body.append("WHERE " + " AND ".join(self._conditions))
        if self._group_by:
            body.append(f"GROUP BY {self._group_by}")
        return body

    def build_count(self) -> tuple[str, list[Any]]:
        """COUNT(*) over the filtered rows, or over the groups when grouped."""
        sql = " ".join(["SELECT COUNT(*) AS total", *self._body()])
        if self._group_by:
            sql = f"SELECT COUNT(*) AS total FROM ({sql})"
        return sql, self.params()

    def build_select(self, columns: str) -> tuple[str, list[Any]]:
        parts = [f"SELECT {columns}", *self._body()]
        if self._order_by:
            parts.append(f"ORDER BY {self._order_by}")
        if self._limit is not None:
            parts.append(f"LIMIT {int(self._limit)}")
            if self._offset:
                parts.append(f"OFFSET {int(self._offset)}")
        return " ".join(parts), self.params()
