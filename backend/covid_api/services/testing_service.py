"""
TestingService: testing centers and daily testing results.
"""
from __future__ import annotations

from datetime import date, timedelta

import structlog

from ..middleware.error_handler import ValidationFailedError
from . import metrics
from .base_service import BaseService
from .case_service import period_start
from .query_builder import QueryBuilder

logger = structlog.get_logger("covid.services.testing")

CENTER_COLUMNS = """
    tc.id, tc.name, tc.region_id, r.name AS region_name,
    tc.municipality_id, m.name AS municipality_name,
    tc.address, tc.phone, tc.email, tc.test_types, tc.operating_hours,
    tc.is_active, tc.latitude, tc.longitude,
    COALESCE(SUM(td.total_tests), 0) AS total_tests,
    COALESCE(SUM(td.positive_tests), 0) AS positive_tests,
    COALESCE(ROUND(AVG(td.positivity_rate), 2), 0) AS avg_positivity_rate
"""

DATA_COLUMNS = """
    td.id, td.date, td.region_id, r.name AS region_name,
    td.testing_center_id, tc.name AS center_name,
    td.total_tests, td.pcr_tests, td.antigen_tests, td.positive_tests,
    td.negative_tests, td.pending_tests, td.positivity_rate
"""


def compute_positivity(positive: int, total: int) -> float:
    """positive / total * 100 rounded to 2 decimals; 0 for no tests."""
    if not total:
        return 0.0
    return round(positive / total * 100, 2)


class TestingService(BaseService):
    """Reads and writes testing_centers and testing_data."""

    def list_centers(
        self,
        *,
        region_id: int | None = None,
        is_active: bool | None = None,
        test_type: str | None = None,
    ) -> list[dict]:
        qb = (
            QueryBuilder("testing_centers tc")
            .left_join("regions r", "tc.region_id = r.id")
            .left_join("municipalities m", "tc.municipality_id = m.id")
            .left_join("testing_data td", "td.testing_center_id = tc.id")
            .filter_equals(region_id, "tc.region_id")
            .filter_boolean(is_active, "tc.is_active")
            .filter_contains(test_type, "tc.test_types")
            .group_by("tc.id")
            .order_by("tc.name")
        )
        sql, params = qb.build_select(CENTER_COLUMNS)
        return self._fetch_all(sql, params)

    def list_data(
        self,
        *,
        on_date: str | None = None,
        region_id: int | None = None,
        testing_center_id: int | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ):
        qb = (
            QueryBuilder("testing_data td")
            .left_join("regions r", "td.region_id = r.id")
            .left_join("testing_centers tc", "td.testing_center_id = tc.id")
            .filter_equals(on_date, "td.date")
            .filter_equals(region_id, "td.region_id")
            .filter_equals(testing_center_id, "td.testing_center_id")
        )
        if start_date and end_date:
            qb.filter_date_range(start_date, end_date, "td.date")
        qb.order_by("td.date DESC, td.region_id, td.testing_center_id")
        return self._paginated_list(qb, DATA_COLUMNS, limit, offset)

    def summary(self, period: str = "all", today: date | None = None) -> dict:
        since = period_start(period, today)
        qb = QueryBuilder("testing_data").filter_date_range(since, None)
        sql, params = qb.build_select("""
            COUNT(*) AS total_records,
            COALESCE(SUM(total_tests), 0) AS total_tests,
            COALESCE(SUM(pcr_tests), 0) AS pcr_tests,
            COALESCE(SUM(antigen_tests), 0) AS antigen_tests,
            COALESCE(SUM(positive_tests), 0) AS positive_tests,
            COALESCE(SUM(negative_tests), 0) AS negative_tests,
            COALESCE(SUM(pending_tests), 0) AS pending_tests,
            COALESCE(ROUND(AVG(positivity_rate), 2), 0) AS avg_positivity_rate,
            COUNT(DISTINCT testing_center_id) AS active_centers,
            MIN(date) AS first_date,
            MAX(date) AS last_date
        """)
        summary = self._fetch_one(sql, params) or {}
        summary["period"] = period
        summary["overall_positivity_rate"] = metrics.positivity_rate(
            summary.get("positive_tests"), summary.get("total_tests")
        )

        top = (
            QueryBuilder("testing_data td")
            .join("testing_centers tc", "td.testing_center_id = tc.id")
            .left_join("regions r", "tc.region_id = r.id")
            .filter_date_range(since, None, "td.date")
            .group_by("tc.id")
            .order_by("total_tests DESC")
            .limit(10)
        )
        sql, params = top.build_select("""
            tc.id, tc.name, r.name AS region_name,
            SUM(td.total_tests) AS total_tests,
            SUM(td.positive_tests) AS positive_tests,
            ROUND(AVG(td.positivity_rate), 2) AS avg_positivity_rate
        """)
        return {"summary": summary, "top_centers": self._fetch_all(sql, params)}

    def positivity_trends(self, days: int = 30, today: date | None = None) -> list[dict]:
        today = today or date.today()
        since = (today - timedelta(days=days)).isoformat()
        rows = self._fetch_all(
            """
            SELECT date,
                   SUM(total_tests) AS total_tests,
                   SUM(positive_tests) AS positive_tests
            FROM testing_data
            WHERE date >= ?
            GROUP BY date
            ORDER BY date ASC
            """,
            [since],
        )
        for row in rows:
            row["positivity_rate"] = compute_positivity(row["positive_tests"] or 0, row["total_tests"] or 0)
        return metrics.with_moving_averages(
            rows,
            {"tests": "total_tests", "positive_tests": "positive_tests", "positivity_rate": "positivity_rate"},
        )

    def create_center(self, center: dict) -> dict:
        result = self._write(
            """
            INSERT INTO testing_centers
                (name, region_id, municipality_id, address, phone, email, test_types,
                 operating_hours, is_active, latitude, longitude)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                center["name"],
                center["region_id"],
                center.get("municipality_id"),
                center.get("address"),
                center.get("phone"),
                center.get("email"),
                center.get("test_types"),
                center.get("operating_hours"),
                1 if center.get("is_active", True) else 0,
                center.get("latitude"),
                center.get("longitude"),
            ],
        )
        logger.info("testing_center_created", id=result.lastrowid)
        return {"id": result.lastrowid}

    def record_testing_data(self, record: dict) -> dict:
        """Insert or accumulate one (date, region, center) testing row.

        positivity_rate is recomputed from the accumulated counters.
        """
        pcr = record.get("pcr_tests", 0)
        antigen = record.get("antigen_tests", 0)
        total = record.get("total_tests")
        if total is None:
            total = pcr + antigen
        positive = record.get("positive_tests", 0)
        if positive > total:
            raise ValidationFailedError("Validation failed", details=["Positive tests cannot exceed total tests"])
        self._write(
            """
            INSERT INTO testing_data
                (date, region_id, municipality_id, testing_center_id, total_tests, pcr_tests,
                 antigen_tests, positive_tests, negative_tests, pending_tests, positivity_rate)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(date, region_id, testing_center_id) DO UPDATE SET
                total_tests = total_tests + excluded.total_tests,
                pcr_tests = pcr_tests + excluded.pcr_tests,
                antigen_tests = antigen_tests + excluded.antigen_tests,
                positive_tests = positive_tests + excluded.positive_tests,
                negative_tests = negative_tests + excluded.negative_tests,
                pending_tests = excluded.pending_tests,
                positivity_rate = CASE
                    WHEN total_tests + excluded.total_tests > 0
                    THEN ROUND((positive_tests + excluded.positive_tests) * 100.0
                               / (total_tests + excluded.total_tests), 2)
                    ELSE 0 END,
                updated_at = CURRENT_TIMESTAMP
            """,
            [
                str(record["date"]),
                record["region_id"],
                record.get("municipality_id"),
                record["testing_center_id"],
                total,
                pcr,
                antigen,
                positive,
                record.get("negative_tests", 0),
                record.get("pending_tests", 0),
                compute_positivity(positive, total),
            ],
        )
        row = self._fetch_one(
            """
            SELECT id, total_tests, positive_tests, positivity_rate FROM testing_data
            WHERE date = ? AND region_id = ? AND testing_center_id = ?
            """,
            [str(record["date"]), record["region_id"], record["testing_center_id"]],
        )
        return row or {}


testing_service = TestingService()
