"""
StatisticsService: national dashboards, trends, regional comparison
and demographics.
"""
from __future__ import annotations

from datetime import date, timedelta

import structlog

from ..cache import STATISTICS_CACHE, app_cache
from ..config.constants import AGE_GROUPS
from . import metrics
from .base_service import BaseService
from .hospital_service import hospital_service
from .region_service import REGION_STATS_SQL
from .vaccination_service import PEOPLE_BY_REGION_SQL

logger = structlog.get_logger("covid.services.statistics")

OVERVIEW_CACHE_TTL = 60


class StatisticsService(BaseService):
    """Cross-table aggregates for the statistics endpoints."""

    def _latest_cases(self) -> dict:
        row = self._fetch_one(
            """
            SELECT date AS latest_date,
                   SUM(total_cases) AS total_cases,
                   SUM(new_cases) AS new_cases,
                   SUM(active_cases) AS active_cases,
                   SUM(deaths) AS deaths,
                   SUM(new_deaths) AS new_deaths,
                   SUM(recovered) AS recovered,
                   SUM(new_recovered) AS new_recovered,
                   SUM(hospitalized) AS hospitalized,
                   SUM(icu_patients) AS icu_patients,
                   SUM(ventilator_patients) AS ventilator_patients
            FROM covid_cases
            WHERE date = (SELECT MAX(date) FROM covid_cases)
            """
        ) or {}
        return {k: (v if v is not None or k == "latest_date" else 0) for k, v in row.items()}

    def overview(self) -> dict:
        cached = app_cache.get(STATISTICS_CACHE, "overview")
        if cached is not None:
            return cached

        population_row = self._fetch_one(
            """
            SELECT COALESCE(SUM(population), 0) AS total_population,
                   COUNT(*) AS regions,
                   (SELECT COUNT(*) FROM municipalities) AS municipalities
            FROM regions
            """
        ) or {}
        population = population_row.get("total_population") or 0

        cases = self._latest_cases()
        cases["case_fatality_rate"] = metrics.case_fatality_rate(cases.get("deaths"), cases.get("total_cases"))
        cases["recovery_rate"] = metrics.recovery_rate(cases.get("recovered"), cases.get("total_cases"))
        cases["active_case_rate"] = metrics.active_case_rate(cases.get("active_cases"), cases.get("total_cases"))
        cases["incidence_per_100k"] = metrics.per_capita(cases.get("total_cases"), population)
        cases["new_cases_per_100k"] = metrics.per_capita(cases.get("new_cases"), population)

        vaccination = self._fetch_one(
            f"""
            SELECT COALESCE((SELECT SUM(total_doses) FROM vaccinations), 0) AS total_doses,
                   COALESCE((SELECT SUM(booster_dose) FROM vaccinations), 0) AS booster_doses,
                   COALESCE(SUM(people_vaccinated), 0) AS people_vaccinated,
                   COALESCE(SUM(people_fully_vaccinated), 0) AS people_fully_vaccinated
            FROM ({PEOPLE_BY_REGION_SQL})
            """
        ) or {}
        vaccination["vaccination_rate"] = metrics.vaccination_coverage(vaccination.get("people_vaccinated"), population)
        vaccination["full_vaccination_rate"] = metrics.vaccination_coverage(
            vaccination.get("people_fully_vaccinated"), population
        )

        testing = self._fetch_one(
            """
            SELECT date AS latest_date,
                   SUM(total_tests) AS total_tests,
                   SUM(positive_tests) AS positive_tests
            FROM testing_data
            WHERE date = (SELECT MAX(date) FROM testing_data)
            """
        ) or {}
        testing["positivity_rate"] = metrics.positivity_rate(testing.get("positive_tests"), testing.get("total_tests"))
        testing["tests_per_1000"] = metrics.per_capita(testing.get("total_tests"), population, scale=1000)

        result = {
            "cases": cases,
            "vaccination": vaccination,
            "hospital_capacity": hospital_service.capacity(),
            "testing": testing,
            "population": population_row,
        }
        app_cache.set(STATISTICS_CACHE, "overview", result, ttl=OVERVIEW_CACHE_TTL)
        return result

    def daily_national_series(self, since: str) -> list[dict]:
        return self._fetch_all(
            """
            SELECT date,
                   SUM(new_cases) AS new_cases,
                   SUM(new_deaths) AS new_deaths,
                   SUM(new_recovered) AS new_recovered,
                   SUM(active_cases) AS active_cases,
                   SUM(hospitalized) AS hospitalized
            FROM covid_cases
            WHERE date >= ?
            GROUP BY date
            ORDER BY date ASC
            """,
            [since],
        )

    def trends(self, period: int = 30, today: date | None = None) -> dict:
        today = today or date.today()
        rows = self.daily_national_series((today - timedelta(days=period)).isoformat())
        data = metrics.with_moving_averages(
            rows, {"cases": "new_cases", "deaths": "new_deaths", "recovered": "new_recovered"}
        )
        data = metrics.with_percentage_changes(data, {"cases": "new_cases", "deaths": "new_deaths"})

        cases_stats = metrics.summarize(r["new_cases"] for r in rows)
        deaths_stats = metrics.summarize(r["new_deaths"] for r in rows)
        analysis = {
            "period_days": period,
            "data_points": len(rows),
            "total_new_cases": int(cases_stats["total"]),
            "total_new_deaths": int(deaths_stats["total"]),
            "avg_daily_cases": cases_stats["average"],
            "avg_daily_deaths": deaths_stats["average"],
        }
        if rows:
            peak_cases = max(rows, key=lambda r: r["new_cases"] or 0)
            peak_deaths = max(rows, key=lambda r: r["new_deaths"] or 0)
            analysis["peak_cases"] = {"date": peak_cases["date"], "value": peak_cases["new_cases"]}
            analysis["peak_deaths"] = {"date": peak_deaths["date"], "value": peak_deaths["new_deaths"]}
        if len(rows) >= 14:
            current_week = sum(r["new_cases"] or 0 for r in rows[-7:])
            previous_week = sum(r["new_cases"] or 0 for r in rows[-14:-7])
            change = metrics.percentage_change(previous_week, current_week)
            analysis["weekly_trend"] = {
                "current_week_cases": current_week,
                "previous_week_cases": previous_week,
                "change_pct": change,
            }
            analysis["trend_direction"] = metrics.trend_direction(change)
        return {"data": data, "analysis": analysis}

    def regional(self) -> dict:
        rows = self._fetch_all(f"{REGION_STATS_SQL} ORDER BY r.name")
        for row in rows:
            row["cases_per_100k"] = metrics.per_capita(row["total_cases"], row["population"])
            row["deaths_per_100k"] = metrics.per_capita(row["deaths"], row["population"])
            row["case_fatality_rate"] = metrics.case_fatality_rate(row["deaths"], row["total_cases"])
            row["recovery_rate"] = metrics.recovery_rate(row["recovered"], row["total_cases"])
            row["vaccination_rate"] = metrics.vaccination_coverage(row["people_vaccinated"], row["population"])
            row["beds_per_1000"] = metrics.per_capita(row["total_beds"], row["population"], scale=1000)

        summary = {}
        if rows:
            by_incidence = sorted(rows, key=lambda r: r["cases_per_100k"], reverse=True)
            by_vaccination = sorted(rows, key=lambda r: float(r["vaccination_rate"]), reverse=True)
            cfrs = [float(r["case_fatality_rate"]) for r in rows]
            summary = {
                "highest_cases_per_100k": {
                    "region": by_incidence[0]["name"], "value": by_incidence[0]["cases_per_100k"],
                },
                "lowest_cases_per_100k": {
                    "region": by_incidence[-1]["name"], "value": by_incidence[-1]["cases_per_100k"],
                },
                "highest_vaccination_rate": {
                    "region": by_vaccination[0]["name"], "value": by_vaccination[0]["vaccination_rate"],
                },
                "lowest_vaccination_rate": {
                    "region": by_vaccination[-1]["name"], "value": by_vaccination[-1]["vaccination_rate"],
                },
                "average_case_fatality_rate": f"{sum(cfrs) / len(cfrs):.2f}",
            }
        return {"regions": rows, "summary": summary}

    def demographics(self) -> dict:
        rows = self._fetch_all(
            """
            SELECT age_group,
                   SUM(cases) AS cases,
                   SUM(deaths) AS deaths,
                   SUM(vaccinated) AS vaccinated
            FROM age_groups
            GROUP BY age_group
            """
        )
        order = {group: i for i, group in enumerate(AGE_GROUPS)}
        rows.sort(key=lambda r: order.get(r["age_group"], len(order)))

        total_cases = sum(r["cases"] or 0 for r in rows)
        total_deaths = sum(r["deaths"] or 0 for r in rows)
        total_vaccinated = sum(r["vaccinated"] or 0 for r in rows)
        for row in rows:
            row["case_percentage"] = metrics.rate(row["cases"], total_cases)
            row["death_percentage"] = metrics.rate(row["deaths"], total_deaths)
            row["vaccinated_percentage"] = metrics.rate(row["vaccinated"], total_vaccinated)
            row["case_fatality_rate"] = metrics.case_fatality_rate(row["deaths"], row["cases"])
        return {
            "age_groups": rows,
            "totals": {
                "cases": total_cases,
                "deaths": total_deaths,
                "vaccinated": total_vaccinated,
                "case_fatality_rate": metrics.case_fatality_rate(total_deaths, total_cases),
            },
        }

    def comparison(self, compare_days: int = 7, today: date | None = None) -> dict:
        """Current window of compare_days vs the window before it."""
        today = today or date.today()
        current_start = today - timedelta(days=compare_days - 1)
        previous_start = current_start - timedelta(days=compare_days)
        previous_end = current_start - timedelta(days=1)

        sql = """
            SELECT COALESCE(SUM(new_cases), 0) AS cases,
                   COALESCE(SUM(new_deaths), 0) AS deaths,
                   COALESCE(SUM(new_recovered), 0) AS recovered,
                   COALESCE(ROUND(AVG(hospitalized), 2), 0) AS hospitalized
            FROM covid_cases
            WHERE date BETWEEN ? AND ?
        """
        current = self._fetch_one(sql, [current_start.isoformat(), today.isoformat()]) or {}
        previous = self._fetch_one(sql, [previous_start.isoformat(), previous_end.isoformat()]) or {}

        comparison = {}
        for key in ("cases", "deaths", "recovered", "hospitalized"):
            change = metrics.percentage_change(previous.get(key), current.get(key))
            comparison[key] = {
                "current": current.get(key, 0),
                "previous": previous.get(key, 0),
                "change": change,
                "trend": metrics.trend_direction(change),
            }
        return {
            "compare_days": compare_days,
            "current_period": {"start": current_start.isoformat(), "end": today.isoformat()},
            "previous_period": {"start": previous_start.isoformat(), "end": previous_end.isoformat()},
            "comparison": comparison,
        }


statistics_service = StatisticsService()
