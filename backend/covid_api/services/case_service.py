"""
CaseService: daily COVID-19 case records.
"""
from __future__ import annotations

from datetime import date, timedelta

import structlog

from ..middleware.error_handler import NotFoundError, ValidationFailedError
from . import metrics
from .base_service import BaseService
from .pagination import PaginatedResult
from .query_builder import QueryBuilder
from .validation import validate_case_record

logger = structlog.get_logger("covid.services.cases")

CASE_COLUMNS = """
    c.id, c.date, c.region_id, r.name AS region_name, r.code AS region_code,
    c.municipality_id, m.name AS municipality_name,
    c.total_cases, c.new_cases, c.active_cases, c.deaths, c.new_deaths,
    c.recovered, c.new_recovered, c.hospitalized, c.icu_patients,
    c.ventilator_patients, c.created_at, c.updated_at
"""

# period -> days back from today (None means no bound)
SUMMARY_PERIODS = {"daily": 0, "weekly": 7, "monthly": 30, "all": None}


def _case_query() -> QueryBuilder:
    return (
        QueryBuilder("covid_cases c")
        .left_join("regions r", "c.region_id = r.id")
        .left_join("municipalities m", "c.municipality_id = m.id")
    )


def period_start(period: str, today: date | None = None) -> str | None:
    """First date (inclusive) covered by a summary period."""
    days = SUMMARY_PERIODS[period]
    if days is None:
        return None
    today = today or date.today()
    return (today - timedelta(days=days)).isoformat()


class CaseService(BaseService):
    """Reads and writes covid_cases."""

    def list_cases(
        self,
        *,
        on_date: str | None = None,
        region_id: int | None = None,
        municipality_id: int | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> PaginatedResult:
        qb = _case_query()
        qb.filter_equals(on_date, "c.date")
        qb.filter_equals(region_id, "c.region_id")
        qb.filter_equals(municipality_id, "c.municipality_id")
        # A range only applies when both ends are given
        if start_date and end_date:
            qb.filter_date_range(start_date, end_date, "c.date")
        qb.order_by("c.date DESC, c.region_id")
        return self._paginated_list(qb, CASE_COLUMNS, limit, offset)

    def get_case(self, case_id: int) -> dict:
        qb = _case_query().where("c.id = ?", case_id)
        sql, params = qb.build_select(CASE_COLUMNS)
        row = self._fetch_one(sql, params)
        if row is None:
            raise NotFoundError(f"Case record {case_id} not found")
        row["case_fatality_rate"] = metrics.case_fatality_rate(row["deaths"], row["total_cases"])
        row["recovery_rate"] = metrics.recovery_rate(row["recovered"], row["total_cases"])
        row["active_case_rate"] = metrics.active_case_rate(row["active_cases"], row["total_cases"])
        return row

    def latest(self, region_id: int | None = None) -> dict | None:
        qb = _case_query().filter_equals(region_id, "c.region_id")
        qb.order_by("c.date DESC, c.updated_at DESC").limit(1)
        sql, params = qb.build_select(CASE_COLUMNS)
        return self._fetch_one(sql, params)

    def summary(self, period: str = "all", today: date | None = None) -> dict:
        """Sums and averages over a period, with mortality and recovery rates."""
        qb = QueryBuilder("covid_cases").filter_date_range(period_start(period, today), None)
        sql, params = qb.build_select("""
            COUNT(*) AS total_records,
            COALESCE(SUM(new_cases), 0) AS total_new_cases,
            COALESCE(SUM(new_deaths), 0) AS total_new_deaths,
            COALESCE(SUM(new_recovered), 0) AS total_new_recovered,
            COALESCE(ROUND(AVG(new_cases), 2), 0) AS avg_daily_cases,
            COALESCE(ROUND(AVG(new_deaths), 2), 0) AS avg_daily_deaths,
            COALESCE(MAX(total_cases), 0) AS max_total_cases,
            COALESCE(SUM(active_cases), 0) AS total_active_cases,
            COUNT(DISTINCT region_id) AS regions_reporting,
            COUNT(DISTINCT municipality_id) AS municipalities_reporting,
            MIN(date) AS first_date,
            MAX(date) AS last_date
        """)
        row = self._fetch_one(sql, params) or {}
        row["period"] = period
        row["mortality_rate"] = metrics.rate(row.get("total_new_deaths"), row.get("total_new_cases"))
        row["recovery_rate"] = metrics.rate(row.get("total_new_recovered"), row.get("total_new_cases"))
        return row

    def trends(self, days: int = 30, today: date | None = None) -> dict:
        """National daily series with 7-day moving averages."""
        today = today or date.today()
        since = (today - timedelta(days=days)).isoformat()
        rows = self._fetch_all(
            """
            SELECT date,
                   SUM(new_cases) AS new_cases,
                   SUM(new_deaths) AS new_deaths,
                   SUM(new_recovered) AS new_recovered,
                   SUM(active_cases) AS active_cases,
                   SUM(total_cases) AS total_cases
            FROM covid_cases
            WHERE date >= ?
            GROUP BY date
            ORDER BY date ASC
            """,
            [since],
        )
        data = metrics.with_moving_averages(
            rows, {"cases": "new_cases", "deaths": "new_deaths", "recovered": "new_recovered"}
        )
        return {
            "data": data,
            "analysis": {
                "total_days": len(data),
                "moving_average_available": len(data) >= 7,
            },
        }

    def by_region(self, on_date: str | None = None) -> list[dict]:
        """Per-region sums for one day (or all days) with cases per 100k."""
        join_on = "r.id = c.region_id"
        params: list = []
        if on_date:
            join_on += " AND c.date = ?"
            params.append(on_date)
        rows = self._fetch_all(
            f"""
            SELECT r.id AS region_id, r.name AS region_name, r.code AS region_code, r.population,
                   COALESCE(SUM(c.total_cases), 0) AS total_cases,
                   COALESCE(SUM(c.new_cases), 0) AS new_cases,
                   COALESCE(SUM(c.active_cases), 0) AS active_cases,
                   COALESCE(SUM(c.deaths), 0) AS deaths,
                   COALESCE(SUM(c.recovered), 0) AS recovered
            FROM regions r
            LEFT JOIN covid_cases c ON {join_on}
            GROUP BY r.id
            ORDER BY total_cases DESC
            """,
            params,
        )
        for row in rows:
            row["cases_per_100k"] = metrics.per_capita(row["total_cases"], row["population"])
        return rows

    def create_case(self, record: dict) -> dict:
        """Validate and insert one daily record; active cases are derived."""
        validation = validate_case_record(record)
        if not validation.is_valid:
            raise ValidationFailedError("Validation failed", details=validation.errors)

        active = max(
            0,
            (record.get("total_cases") or 0) - (record.get("deaths") or 0) - (record.get("recovered") or 0),
        )
        result = self._write(
            """
            INSERT INTO covid_cases
                (date, region_id, municipality_id, total_cases, new_cases, active_cases,
                 deaths, new_deaths, recovered, new_recovered, hospitalized,
                 icu_patients, ventilator_patients)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                str(record["date"]),
                record.get("region_id"),
                record.get("municipality_id"),
                record.get("total_cases", 0),
                record.get("new_cases", 0),
                active,
                record.get("deaths", 0),
                record.get("new_deaths", 0),
                record.get("recovered", 0),
                record.get("new_recovered", 0),
                record.get("hospitalized", 0),
                record.get("icu_patients", 0),
                record.get("ventilator_patients", 0),
            ],
            conflict_message="A case record for this date and region already exists",
        )
        logger.info("case_record_created", id=result.lastrowid, region_id=record.get("region_id"))
        return {"id": result.lastrowid, "active_cases": active}


case_service = CaseService()
