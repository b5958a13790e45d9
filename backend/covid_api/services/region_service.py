"""
RegionService: regions, their municipalities and per-region statistics.

Case counters in covid_cases are cumulative, so "current" figures for a
region come from its most recent reporting day.
"""
from __future__ import annotations

from datetime import date, timedelta

import structlog

from ..middleware.error_handler import NotFoundError, ValidationFailedError
from . import metrics
from .base_service import BaseService
from .vaccination_service import PEOPLE_BY_REGION_SQL

logger = structlog.get_logger("covid.services.regions")

LATEST_CASES_SQL = """
    SELECT c.region_id, c.date, c.total_cases, c.active_cases, c.deaths,
           c.recovered, c.hospitalized, c.new_cases
    FROM covid_cases c
    WHERE c.date = (SELECT MAX(date) FROM covid_cases WHERE region_id = c.region_id)
"""

REGION_STATS_SQL = f"""
    SELECT r.id, r.name, r.code, r.population, r.area_km2, r.capital,
           (SELECT COUNT(*) FROM municipalities m WHERE m.region_id = r.id) AS municipality_count,
           lc.date AS latest_case_date,
           COALESCE(lc.total_cases, 0) AS total_cases,
           COALESCE(lc.active_cases, 0) AS active_cases,
           COALESCE(lc.deaths, 0) AS deaths,
           COALESCE(lc.recovered, 0) AS recovered,
           COALESCE(lc.hospitalized, 0) AS hospitalized,
           COALESCE(h.hospital_count, 0) AS hospital_count,
           COALESCE(h.total_beds, 0) AS total_beds,
           COALESCE(h.covid_beds, 0) AS covid_beds,
           COALESCE(h.icu_beds, 0) AS icu_beds,
           COALESCE(v.total_doses, 0) AS total_doses,
           COALESCE(p.people_vaccinated, 0) AS people_vaccinated,
           COALESCE(p.people_fully_vaccinated, 0) AS people_fully_vaccinated
    FROM regions r
    LEFT JOIN ({LATEST_CASES_SQL}) lc ON lc.region_id = r.id
    LEFT JOIN (
        SELECT region_id, COUNT(*) AS hospital_count, SUM(total_beds) AS total_beds,
               SUM(covid_beds) AS covid_beds, SUM(icu_beds) AS icu_beds
        FROM hospitals GROUP BY region_id
    ) h ON h.region_id = r.id
    LEFT JOIN (
        SELECT region_id, SUM(total_doses) AS total_doses FROM vaccinations GROUP BY region_id
    ) v ON v.region_id = r.id
    LEFT JOIN ({PEOPLE_BY_REGION_SQL}) p ON p.region_id = r.id
"""

UPDATABLE_COLUMNS = ("name", "code", "population", "area_km2", "capital")

COMPARISON_METRICS = ("cases", "deaths", "vaccination", "recovery")


class RegionService(BaseService):
    """Reads and writes regions."""

    def list_regions(self, include_stats: bool = False) -> list[dict]:
        if not include_stats:
            return self._fetch_all(
                """
                SELECT r.id, r.name, r.code, r.population, r.area_km2, r.capital,
                       COUNT(m.id) AS municipality_count
                FROM regions r
                LEFT JOIN municipalities m ON m.region_id = r.id
                GROUP BY r.id
                ORDER BY r.name
                """
            )
        rows = self._fetch_all(f"{REGION_STATS_SQL} ORDER BY r.name")
        for row in rows:
            row["cases_per_100k"] = metrics.per_capita(row["total_cases"], row["population"])
            row["vaccination_rate"] = metrics.vaccination_coverage(row["people_vaccinated"], row["population"])
        return rows

    def _require(self, region_id: int) -> dict:
        row = self._fetch_one("SELECT * FROM regions WHERE id = ?", [region_id])
        if row is None:
            raise NotFoundError(f"Region {region_id} not found")
        return row

    def get_region(self, region_id: int) -> dict:
        row = self._fetch_one(f"{REGION_STATS_SQL} WHERE r.id = ?", [region_id])
        if row is None:
            raise NotFoundError(f"Region {region_id} not found")
        area = row.get("area_km2") or 0
        row["population_density"] = round((row["population"] or 0) / area, 2) if area else 0
        row["case_fatality_rate"] = metrics.case_fatality_rate(row["deaths"], row["total_cases"])
        row["recovery_rate"] = metrics.recovery_rate(row["recovered"], row["total_cases"])
        row["vaccination_rate"] = metrics.vaccination_coverage(row["people_vaccinated"], row["population"])
        row["hospital_bed_ratio"] = metrics.per_capita(row["total_beds"], row["population"], scale=1000)
        return row

    def municipalities(self, region_id: int) -> list[dict]:
        self._require(region_id)
        return self._fetch_all(
            """
            SELECT m.id, m.name, m.code, m.population, m.area_km2,
                   COALESCE(SUM(c.new_cases), 0) AS reported_cases,
                   COALESCE(SUM(c.new_deaths), 0) AS reported_deaths,
                   MAX(c.date) AS last_report_date
            FROM municipalities m
            LEFT JOIN covid_cases c ON c.municipality_id = m.id
            WHERE m.region_id = ?
            GROUP BY m.id
            ORDER BY m.population DESC
            """,
            [region_id],
        )

    def trends(self, region_id: int, days: int = 30, today: date | None = None) -> dict:
        region = self._require(region_id)
        today = today or date.today()
        since = (today - timedelta(days=days)).isoformat()
        rows = self._fetch_all(
            """
            SELECT date, total_cases, new_cases, active_cases, deaths, new_deaths,
                   recovered, new_recovered, hospitalized
            FROM covid_cases
            WHERE region_id = ? AND date >= ?
            ORDER BY date ASC
            """,
            [region_id, since],
        )
        return {
            "region": {"id": region["id"], "name": region["name"], "code": region["code"]},
            "data": metrics.with_moving_averages(rows, {"cases": "new_cases", "deaths": "new_deaths"}),
        }

    def comparison(self, metric: str = "cases") -> dict:
        """Rank regions on one metric and describe the spread."""
        if metric not in COMPARISON_METRICS:
            raise ValidationFailedError(
                f"Invalid metric '{metric}'", details=[f"metric must be one of: {', '.join(COMPARISON_METRICS)}"]
            )
        rows = self._fetch_all(f"{REGION_STATS_SQL} ORDER BY r.id")
        data = []
        for row in rows:
            item = {"region_id": row["id"], "region_name": row["name"], "population": row["population"]}
            if metric == "cases":
                item["value"] = row["total_cases"]
                item["per_100k"] = metrics.per_capita(row["total_cases"], row["population"])
            elif metric == "deaths":
                item["value"] = row["deaths"]
                item["per_100k"] = metrics.per_capita(row["deaths"], row["population"])
            elif metric == "vaccination":
                item["value"] = float(metrics.vaccination_coverage(row["people_vaccinated"], row["population"]))
            else:
                item["value"] = float(metrics.recovery_rate(row["recovered"], row["total_cases"]))
            data.append(item)
        data.sort(key=lambda item: item["value"], reverse=True)

        values = [item["value"] for item in data]
        analysis = {}
        if data:
            analysis = {
                "highest": data[0],
                "lowest": data[-1],
                "average": round(sum(values) / len(values), 2),
                "median": metrics.median(values),
            }
        return {"metric": metric, "data": data, "analysis": analysis}

    def create_region(self, region: dict) -> dict:
        result = self._write(
            "INSERT INTO regions (name, code, population, area_km2, capital) VALUES (?, ?, ?, ?, ?)",
            [region["name"], region["code"], region.get("population", 0), region.get("area_km2", 0), region.get("capital")],
            conflict_message="Region with this name or code already exists",
        )
        logger.info("region_created", id=result.lastrowid, code=region["code"])
        return {"id": result.lastrowid}

    def update_region(self, region_id: int, updates: dict) -> dict:
        updates = {k: v for k, v in updates.items() if k in UPDATABLE_COLUMNS and v is not None}
        if not updates:
            raise ValidationFailedError("No valid fields provided for update")
        self._require(region_id)
        assignments = ", ".join(f"{column} = ?" for column in updates)
        self._write(
            f"UPDATE regions SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [*updates.values(), region_id],
            conflict_message="Region with this name or code already exists",
        )
        logger.info("region_updated", id=region_id, fields=sorted(updates))
        return self._require(region_id)


region_service = RegionService()
