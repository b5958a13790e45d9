"""
VaccinationService: dose records and coverage.

people_vaccinated and people_fully_vaccinated are cumulative per
(region, vaccine_type), so the largest value seen for that pair is the
current one. Regional coverage sums those maxima across vaccine types.
"""
from __future__ import annotations

from datetime import date, timedelta

import structlog

from ..config.constants import DEFAULT_VACCINE_TYPE
from . import metrics
from .base_service import BaseService
from .pagination import PaginatedResult
from .query_builder import QueryBuilder

logger = structlog.get_logger("covid.services.vaccinations")

VACCINATION_COLUMNS = """
    v.id, v.date, v.region_id, r.name AS region_name, r.population,
    v.municipality_id, m.name AS municipality_name, v.vaccine_type,
    v.first_dose, v.second_dose, v.booster_dose, v.total_doses,
    v.people_vaccinated, v.people_fully_vaccinated
"""

PEOPLE_BY_REGION_SQL = """
    SELECT region_id,
           SUM(max_people) AS people_vaccinated,
           SUM(max_full) AS people_fully_vaccinated
    FROM (
        SELECT region_id, vaccine_type,
               MAX(people_vaccinated) AS max_people,
               MAX(people_fully_vaccinated) AS max_full
        FROM vaccinations
        GROUP BY region_id, vaccine_type
    )
    GROUP BY region_id
"""


def _with_rates(row: dict) -> dict:
    row["vaccination_rate"] = metrics.vaccination_coverage(row.get("people_vaccinated"), row.get("population"))
    row["full_vaccination_rate"] = metrics.vaccination_coverage(
        row.get("people_fully_vaccinated"), row.get("population")
    )
    return row


class VaccinationService(BaseService):
    """Reads and writes vaccinations."""

    def list_vaccinations(
        self,
        *,
        on_date: str | None = None,
        region_id: int | None = None,
        vaccine_type: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> PaginatedResult:
        qb = (
            QueryBuilder("vaccinations v")
            .left_join("regions r", "v.region_id = r.id")
            .left_join("municipalities m", "v.municipality_id = m.id")
            .filter_equals(on_date, "v.date")
            .filter_equals(region_id, "v.region_id")
            .filter_equals(vaccine_type, "v.vaccine_type")
            .order_by("v.date DESC, v.region_id, v.vaccine_type")
        )
        return self._paginated_list(qb, VACCINATION_COLUMNS, limit, offset, row_mapper=_with_rates)

    def _regional_people(self) -> list[dict]:
        return self._fetch_all(
            f"""
            SELECT r.id AS region_id, r.name AS region_name, r.code AS region_code, r.population,
                   COALESCE(d.total_doses, 0) AS total_doses,
                   COALESCE(d.first_dose, 0) AS first_dose,
                   COALESCE(d.second_dose, 0) AS second_dose,
                   COALESCE(d.booster_dose, 0) AS booster_dose,
                   COALESCE(p.people_vaccinated, 0) AS people_vaccinated,
                   COALESCE(p.people_fully_vaccinated, 0) AS people_fully_vaccinated
            FROM regions r
            LEFT JOIN (
                SELECT region_id,
                       SUM(total_doses) AS total_doses,
                       SUM(first_dose) AS first_dose,
                       SUM(second_dose) AS second_dose,
                       SUM(booster_dose) AS booster_dose
                FROM vaccinations GROUP BY region_id
            ) d ON d.region_id = r.id
            LEFT JOIN ({PEOPLE_BY_REGION_SQL}) p ON p.region_id = r.id
            ORDER BY r.id
            """
        )

    def summary(self) -> dict:
        totals = self._fetch_one(
            """
            SELECT COUNT(*) AS total_records,
                   COALESCE(SUM(first_dose), 0) AS total_first_doses,
                   COALESCE(SUM(second_dose), 0) AS total_second_doses,
                   COALESCE(SUM(booster_dose), 0) AS total_booster_doses,
                   COALESCE(SUM(total_doses), 0) AS total_doses,
                   MIN(date) AS first_date,
                   MAX(date) AS last_date
            FROM vaccinations
            """
        ) or {}
        regions = self._regional_people()
        population = sum(r["population"] or 0 for r in regions)
        people = sum(r["people_vaccinated"] for r in regions)
        fully = sum(r["people_fully_vaccinated"] for r in regions)

        breakdown = self._fetch_all(
            """
            SELECT vaccine_type,
                   SUM(total_doses) AS total_doses,
                   SUM(first_dose) AS first_doses,
                   SUM(second_dose) AS second_doses,
                   SUM(booster_dose) AS booster_doses
            FROM vaccinations
            GROUP BY vaccine_type
            ORDER BY total_doses DESC
            """
        )
        return {
            "summary": {
                **totals,
                "people_vaccinated": people,
                "people_fully_vaccinated": fully,
                "total_population": population,
                "vaccination_rate": metrics.vaccination_coverage(people, population),
                "full_vaccination_rate": metrics.vaccination_coverage(fully, population),
            },
            "vaccine_types": breakdown,
        }

    def progress(self, days: int = 30, today: date | None = None) -> list[dict]:
        today = today or date.today()
        since = (today - timedelta(days=days)).isoformat()
        rows = self._fetch_all(
            """
            SELECT date,
                   SUM(first_dose) AS first_dose,
                   SUM(second_dose) AS second_dose,
                   SUM(booster_dose) AS booster_dose,
                   SUM(total_doses) AS total_doses
            FROM vaccinations
            WHERE date >= ?
            GROUP BY date
            ORDER BY date ASC
            """,
            [since],
        )
        return metrics.with_moving_averages(rows, {"doses": "total_doses"})

    def by_region(self) -> list[dict]:
        rows = [_with_rates(row) for row in self._regional_people()]
        rows.sort(key=lambda r: float(r["vaccination_rate"]), reverse=True)
        return rows

    def vaccine_types(self) -> list[dict]:
        return self._fetch_all(
            """
            SELECT vaccine_type,
                   SUM(total_doses) AS total_doses,
                   SUM(first_dose) AS first_doses,
                   SUM(second_dose) AS second_doses,
                   SUM(booster_dose) AS booster_doses,
                   COUNT(DISTINCT region_id) AS regions_used,
                   MIN(date) AS first_used,
                   MAX(date) AS last_used
            FROM vaccinations
            GROUP BY vaccine_type
            ORDER BY total_doses DESC
            """
        )

    def coverage(self) -> dict:
        regions = []
        for row in self._regional_people():
            partial = float(metrics.vaccination_coverage(row["people_vaccinated"], row["population"]))
            regions.append({
                "region_id": row["region_id"],
                "region_name": row["region_name"],
                "population": row["population"],
                "people_vaccinated": row["people_vaccinated"],
                "people_fully_vaccinated": row["people_fully_vaccinated"],
                "partial_coverage": f"{partial:.2f}",
                "full_coverage": metrics.vaccination_coverage(row["people_fully_vaccinated"], row["population"]),
                "unvaccinated_rate": f"{max(0.0, 100 - partial):.2f}",
            })

        population = sum(r["population"] or 0 for r in regions)
        people = sum(r["people_vaccinated"] for r in regions)
        fully = sum(r["people_fully_vaccinated"] for r in regions)
        national_partial = float(metrics.vaccination_coverage(people, population))
        national = {
            "population": population,
            "people_vaccinated": people,
            "people_fully_vaccinated": fully,
            "partial_coverage": f"{national_partial:.2f}",
            "full_coverage": metrics.vaccination_coverage(fully, population),
            "unvaccinated_rate": f"{max(0.0, 100 - national_partial):.2f}",
        }

        analysis = {}
        if regions:
            ranked = sorted(regions, key=lambda r: float(r["full_coverage"]), reverse=True)
            analysis = {
                "highest_coverage": {
                    "region_name": ranked[0]["region_name"],
                    "full_coverage": ranked[0]["full_coverage"],
                },
                "lowest_coverage": {
                    "region_name": ranked[-1]["region_name"],
                    "full_coverage": ranked[-1]["full_coverage"],
                },
                "coverage_variance": round(metrics.variance([float(r["full_coverage"]) for r in regions]), 2),
            }
        return {"national": national, "regions": regions, "analysis": analysis}

    def record_vaccination(self, record: dict) -> dict:
        """Insert or accumulate doses for (date, region, vaccine_type).

        Dose counters add up; cumulative people counts keep the larger value.
        """
        vaccine_type = record.get("vaccine_type") or DEFAULT_VACCINE_TYPE
        first = record.get("first_dose", 0)
        second = record.get("second_dose", 0)
        booster = record.get("booster_dose", 0)
        params = [
            str(record["date"]),
            record["region_id"],
            record.get("municipality_id"),
            vaccine_type,
            first,
            second,
            booster,
            first + second + booster,
            record.get("people_vaccinated", 0),
            record.get("people_fully_vaccinated", 0),
        ]
        self._write(
            """
            INSERT INTO vaccinations
                (date, region_id, municipality_id, vaccine_type, first_dose, second_dose,
                 booster_dose, total_doses, people_vaccinated, people_fully_vaccinated)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(date, region_id, vaccine_type) DO UPDATE SET
                first_dose = first_dose + excluded.first_dose,
                second_dose = second_dose + excluded.second_dose,
                booster_dose = booster_dose + excluded.booster_dose,
                total_doses = total_doses + excluded.total_doses,
                people_vaccinated = MAX(people_vaccinated, excluded.people_vaccinated),
                people_fully_vaccinated = MAX(people_fully_vaccinated, excluded.people_fully_vaccinated),
                updated_at = CURRENT_TIMESTAMP
            """,
            params,
        )
        row = self._fetch_one(
            "SELECT id, total_doses FROM vaccinations WHERE date = ? AND region_id = ? AND vaccine_type = ?",
            [str(record["date"]), record["region_id"], vaccine_type],
        )
        logger.info("vaccination_recorded", region_id=record["region_id"], vaccine_type=vaccine_type)
        return row or {}


vaccination_service = VaccinationService()
