"""
Unit tests for the service layer: QueryBuilder, pagination, and base service.

Tests the shared infrastructure that all domain services rely on.
"""
import pytest

from covid_api.dependencies import execute_query
from covid_api.middleware.error_handler import ConflictError, StorageError, ValidationFailedError
from covid_api.services.base_service import BaseService
from covid_api.services.pagination import paginate_query
from covid_api.services.query_builder import QueryBuilder


class TestQueryBuilderInit:
    """Test QueryBuilder construction."""

    def test_basic_construction(self):
        """QueryBuilder should accept a base table."""
        qb = QueryBuilder("covid_cases c")
        assert qb.base_table == "covid_cases c"
        assert qb._conditions == []
        assert qb._params == []
        assert qb._joins == []

    def test_build_select_no_conditions(self):
        """Simple SELECT without conditions."""
        sql, params = QueryBuilder("covid_cases c").build_select("c.id, c.date")
        assert sql == "SELECT c.id, c.date FROM covid_cases c"
        assert params == []

    def test_build_count_no_conditions(self):
        sql, params = QueryBuilder("covid_cases c").build_count()
        assert sql == "SELECT COUNT(*) AS total FROM covid_cases c"
        assert params == []


class TestQueryBuilderFilters:
    """Test filter methods."""

    def test_filter_equals(self):
        sql, params = QueryBuilder("covid_cases c").filter_equals(3, "c.region_id").build_select("*")
        assert "WHERE c.region_id = ?" in sql
        assert params == [3]

    def test_filter_equals_none_is_noop(self):
        """filter_equals(None) should not add conditions."""
        sql, params = QueryBuilder("covid_cases c").filter_equals(None, "c.region_id").build_select("*")
        assert "WHERE" not in sql
        assert params == []

    def test_filter_date_range_both_bounds(self):
        qb = QueryBuilder("covid_cases").filter_date_range("2024-01-01", "2024-01-31")
        sql, params = qb.build_select("*")
        assert "date >= ? AND date <= ?" in sql
        assert params == ["2024-01-01", "2024-01-31"]

    def test_filter_date_range_open_end(self):
        sql, params = QueryBuilder("covid_cases").filter_date_range("2024-01-01", None).build_select("*")
        assert "date <= ?" not in sql
        assert params == ["2024-01-01"]

    def test_filter_contains_wraps_wildcards(self):
        sql, params = QueryBuilder("testing_centers").filter_contains("PCR", "test_types").build_select("*")
        assert "test_types LIKE ?" in sql
        assert params == ["%PCR%"]

    def test_filter_boolean_converts_to_int(self):
        _, params = QueryBuilder("hospitals").filter_boolean(False, "is_covid_hospital").build_select("*")
        assert params == [0]

    def test_conditions_joined_with_and(self):
        qb = QueryBuilder("covid_cases c").filter_equals(1, "c.region_id").filter_equals("2024-01-01", "c.date")
        sql, params = qb.build_select("*")
        assert "c.region_id = ? AND c.date = ?" in sql
        assert params == [1, "2024-01-01"]


class TestQueryBuilderPaging:
    """Ordering and paging."""

    def test_order_by(self):
        sql, _ = QueryBuilder("regions").order_by("name ASC").limit(5).build_select("*")
        assert sql == "SELECT * FROM regions ORDER BY name ASC LIMIT 5"

    def test_limit_and_offset(self):
        sql, _ = QueryBuilder("regions").limit(10, 20).build_select("*")
        assert sql.endswith("LIMIT 10 OFFSET 20")

    def test_zero_offset_omitted(self):
        sql, _ = QueryBuilder("regions").limit(10, 0).build_select("*")
        assert "OFFSET" not in sql

    def test_grouped_count_wraps_subquery(self):
        qb = QueryBuilder("covid_cases").where("region_id = ?", 5).group_by("date")
        sql, params = qb.build_count()
        assert sql.startswith("SELECT COUNT(*) AS total FROM (SELECT COUNT(*) AS total FROM covid_cases")
        assert sql.endswith("WHERE region_id = ? GROUP BY date)")
        assert params == [5]


class TestPagination:
    """paginate_query against the regions reference data."""

    def test_page_metadata(self):
        result = paginate_query(QueryBuilder("regions").order_by("id"), "id, name", limit=3, offset=0)
        assert result.total == 7
        assert [r["id"] for r in result.data] == [1, 2, 3]
        assert result.pagination == {"limit": 3, "offset": 0, "has_more": True}

    def test_last_page(self):
        result = paginate_query(QueryBuilder("regions").order_by("id"), "id", limit=5, offset=5)
        assert len(result.data) == 2
        assert result.pagination["has_more"] is False

    def test_limit_clamped(self):
        result = paginate_query(QueryBuilder("regions"), "id", limit=5000, offset=-3)
        assert result.pagination["limit"] == 1000
        assert result.pagination["offset"] == 0

    def test_row_mapper_applied(self):
        result = paginate_query(
            QueryBuilder("regions").order_by("id"), "id, code", limit=1, offset=0,
            row_mapper=lambda row: {**row, "label": row["code"].lower()},
        )
        assert result.data[0]["label"] == "pr"


class TestBaseService:
    """Gateway failures become domain errors."""

    def test_fetch_raises_storage_error_on_bad_sql(self):
        with pytest.raises(StorageError):
            BaseService()._fetch_all("SELECT * FROM no_such_table")

    def test_write_maps_unique_violation_to_conflict(self):
        service = BaseService()
        with pytest.raises(ConflictError) as exc_info:
            service._write(
                "INSERT INTO regions (name, code) VALUES (?, ?)", ["Pristina", "XX"],
                conflict_message="duplicate region",
            )
        assert exc_info.value.message == "duplicate region"

    def test_write_maps_foreign_key_violation_to_validation(self):
        with pytest.raises(ValidationFailedError):
            BaseService()._write(
                "INSERT INTO municipalities (region_id, name, code) VALUES (?, ?, ?)", [999, "Nowhere", "NW-01"]
            )

    def test_write_returns_result(self):
        result = BaseService()._write("INSERT INTO regions (name, code) VALUES (?, ?)", ["Test", "TS"])
        assert result.success
        assert execute_query("SELECT COUNT(*) AS n FROM regions").first()["n"] == 8
