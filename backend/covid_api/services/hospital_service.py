"""
HospitalService: hospitals, capacity and occupancy.
"""
from __future__ import annotations

import structlog

from ..middleware.error_handler import NotFoundError, ValidationFailedError
from . import metrics
from .base_service import BaseService
from .query_builder import QueryBuilder
from .validation import OCCUPANCY_LIMITS, validate_occupancy

logger = structlog.get_logger("covid.services.hospitals")

HOSPITAL_COLUMNS = """
    h.id, h.name, h.region_id, r.name AS region_name,
    h.municipality_id, m.name AS municipality_name,
    h.address, h.phone, h.email,
    h.total_beds, h.covid_beds, h.icu_beds, h.ventilators,
    h.occupied_beds, h.occupied_covid_beds, h.occupied_icu_beds, h.occupied_ventilators,
    h.is_covid_hospital, h.latitude, h.longitude, h.updated_at
"""


def with_availability(row: dict) -> dict:
    """Add available_* counters and occupancy rates to a hospital row."""
    for occupied, capacity in OCCUPANCY_LIMITS.items():
        available = f"available_{capacity if capacity != 'total_beds' else 'beds'}"
        row[available] = max(0, (row.get(capacity) or 0) - (row.get(occupied) or 0))
    row["occupancy_rate"] = metrics.occupancy_rate(row.get("occupied_beds"), row.get("total_beds"))
    row["covid_occupancy_rate"] = metrics.occupancy_rate(row.get("occupied_covid_beds"), row.get("covid_beds"))
    row["icu_occupancy_rate"] = metrics.occupancy_rate(row.get("occupied_icu_beds"), row.get("icu_beds"))
    return row


def _hospital_query() -> QueryBuilder:
    return (
        QueryBuilder("hospitals h")
        .left_join("regions r", "h.region_id = r.id")
        .left_join("municipalities m", "h.municipality_id = m.id")
    )


class HospitalService(BaseService):
    """Reads and writes hospitals."""

    def list_hospitals(
        self,
        *,
        region_id: int | None = None,
        is_covid_hospital: bool | None = None,
        has_capacity: bool | None = None,
    ) -> list[dict]:
        qb = _hospital_query()
        qb.filter_equals(region_id, "h.region_id")
        qb.filter_boolean(is_covid_hospital, "h.is_covid_hospital")
        if has_capacity is True:
            qb.where("h.total_beds > h.occupied_beds")
        elif has_capacity is False:
            qb.where("h.total_beds <= h.occupied_beds")
        qb.order_by("h.total_beds DESC, h.name")
        sql, params = qb.build_select(HOSPITAL_COLUMNS)
        return [with_availability(row) for row in self._fetch_all(sql, params)]

    def get_hospital(self, hospital_id: int) -> dict:
        sql, params = _hospital_query().where("h.id = ?", hospital_id).build_select(HOSPITAL_COLUMNS)
        row = self._fetch_one(sql, params)
        if row is None:
            raise NotFoundError(f"Hospital {hospital_id} not found")
        return with_availability(row)

    def capacity(self) -> dict:
        """National capacity, availability and utilization."""
        totals = self._fetch_one(
            """
            SELECT COUNT(*) AS total_hospitals,
                   COALESCE(SUM(is_covid_hospital), 0) AS covid_hospitals,
                   COALESCE(SUM(total_beds), 0) AS total_beds,
                   COALESCE(SUM(covid_beds), 0) AS covid_beds,
                   COALESCE(SUM(icu_beds), 0) AS icu_beds,
                   COALESCE(SUM(ventilators), 0) AS ventilators,
                   COALESCE(SUM(occupied_beds), 0) AS occupied_beds,
                   COALESCE(SUM(occupied_covid_beds), 0) AS occupied_covid_beds,
                   COALESCE(SUM(occupied_icu_beds), 0) AS occupied_icu_beds,
                   COALESCE(SUM(occupied_ventilators), 0) AS occupied_ventilators
            FROM hospitals
            """
        ) or {}
        with_availability(totals)
        totals["ventilator_utilization_rate"] = metrics.occupancy_rate(
            totals.get("occupied_ventilators"), totals.get("ventilators")
        )
        return totals

    def by_region(self) -> list[dict]:
        rows = self._fetch_all(
            """
            SELECT r.id AS region_id, r.name AS region_name, r.population,
                   COUNT(h.id) AS hospital_count,
                   COALESCE(SUM(h.total_beds), 0) AS total_beds,
                   COALESCE(SUM(h.covid_beds), 0) AS covid_beds,
                   COALESCE(SUM(h.icu_beds), 0) AS icu_beds,
                   COALESCE(SUM(h.ventilators), 0) AS ventilators,
                   COALESCE(SUM(h.occupied_beds), 0) AS occupied_beds,
                   COALESCE(SUM(h.occupied_covid_beds), 0) AS occupied_covid_beds,
                   COALESCE(SUM(h.occupied_icu_beds), 0) AS occupied_icu_beds
            FROM regions r
            LEFT JOIN hospitals h ON h.region_id = r.id
            GROUP BY r.id
            ORDER BY total_beds DESC
            """
        )
        for row in rows:
            row["occupancy_rate"] = metrics.occupancy_rate(row["occupied_beds"], row["total_beds"])
            row["covid_occupancy_rate"] = metrics.occupancy_rate(row["occupied_covid_beds"], row["covid_beds"])
            row["beds_per_1000"] = metrics.per_capita(row["total_beds"], row["population"], scale=1000)
        return rows

    def create_hospital(self, hospital: dict) -> dict:
        result = self._write(
            """
            INSERT INTO hospitals
                (name, region_id, municipality_id, address, phone, email,
                 total_beds, covid_beds, icu_beds, ventilators, is_covid_hospital,
                 latitude, longitude)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                hospital["name"],
                hospital["region_id"],
                hospital.get("municipality_id"),
                hospital.get("address"),
                hospital.get("phone"),
                hospital.get("email"),
                hospital.get("total_beds", 0),
                hospital.get("covid_beds", 0),
                hospital.get("icu_beds", 0),
                hospital.get("ventilators", 0),
                1 if hospital.get("is_covid_hospital") else 0,
                hospital.get("latitude"),
                hospital.get("longitude"),
            ],
        )
        logger.info("hospital_created", id=result.lastrowid, name=hospital["name"])
        return {"id": result.lastrowid}

    def update_capacity(self, hospital_id: int, updates: dict) -> dict:
        """Set occupied counters; every supplied value must fit its capacity."""
        updates = {k: v for k, v in updates.items() if k in OCCUPANCY_LIMITS and v is not None}
        if not updates:
            raise ValidationFailedError("No capacity fields provided for update")

        current = self._fetch_one("SELECT * FROM hospitals WHERE id = ?", [hospital_id])
        if current is None:
            raise NotFoundError(f"Hospital {hospital_id} not found")

        validation = validate_occupancy(current, updates)
        if not validation.is_valid:
            raise ValidationFailedError("Validation failed", details=validation.errors)

        assignments = ", ".join(f"{column} = ?" for column in updates)
        self._write(
            f"UPDATE hospitals SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [*updates.values(), hospital_id],
        )
        logger.info("hospital_capacity_updated", id=hospital_id, fields=sorted(updates))
        return self.get_hospital(hospital_id)


hospital_service = HospitalService()
