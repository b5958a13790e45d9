"""
Job bodies for the automation service.

Each function does one unit of work through the query gateway and raises
AutomationError when a statement fails, leaving error isolation and
status bookkeeping to AutomationService.run_job().

The synthetic refresh is additive: every run adds a fresh random delta
to today's (date, region) row, so N runs in a day accumulate N deltas.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Sequence

import structlog

from ..cache import AUTOMATION_CACHE, MOVING_AVERAGES_KEY, app_cache
from ..config.constants import (
    BOOSTER_DOSE_RANGE,
    COVID_OCCUPANCY,
    FIRST_DOSE_RANGE,
    ICU_OCCUPANCY,
    MOVING_AVERAGE_WINDOW,
    NEW_CASES_RANGE,
    NEW_DEATHS_RANGE,
    NEW_RECOVERED_RANGE,
    SECOND_DOSE_RANGE,
    TOTAL_OCCUPANCY,
    TREND_LOOKBACK_DAYS,
    VACCINE_TYPES,
    VENTILATOR_OCCUPANCY,
    WEEKLY_REPORT_DAYS,
)
from ..dependencies import QueryResult, execute_query
from . import metrics

logger = structlog.get_logger("covid.automation")

# Moving averages stay readable for two days after the midnight run
MOVING_AVERAGES_TTL = 2 * 24 * 3600


class AutomationError(Exception):
    """A job statement failed at the storage layer."""


@dataclass
class CaseDelta:
    new_cases: int
    new_deaths: int
    new_recovered: int


def _run(sql: str, params: Sequence[Any] = ()) -> QueryResult:
    result = execute_query(sql, params)
    if not result.success:
        raise AutomationError(result.error or "query failed")
    return result


def region_ids() -> list[int]:
    return [row["id"] for row in _run("SELECT id FROM regions ORDER BY id").data]


# =============================================================================
# CASE REFRESH
# =============================================================================

def draw_case_delta(rng: random.Random) -> CaseDelta:
    """Bounded random increments for one region."""
    return CaseDelta(
        new_cases=rng.randint(*NEW_CASES_RANGE),
        new_deaths=rng.randint(*NEW_DEATHS_RANGE),
        new_recovered=rng.randint(*NEW_RECOVERED_RANGE),
    )


UPSERT_CASE_DELTA_SQL = """
    INSERT INTO covid_cases
        (date, region_id, total_cases, new_cases, active_cases,
         deaths, new_deaths, recovered, new_recovered)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(date, region_id) DO UPDATE SET
        total_cases = total_cases + excluded.new_cases,
        new_cases = new_cases + excluded.new_cases,
        deaths = deaths + excluded.new_deaths,
        new_deaths = new_deaths + excluded.new_deaths,
        recovered = recovered + excluded.new_recovered,
        new_recovered = new_recovered + excluded.new_recovered,
        active_cases = MAX(0,
            (total_cases + excluded.new_cases)
            - (deaths + excluded.new_deaths)
            - (recovered + excluded.new_recovered)),
        updated_at = CURRENT_TIMESTAMP
"""


def upsert_daily_case_delta(day: date, region_id: int, delta: CaseDelta) -> None:
    """Add a delta to the (day, region) row, creating it from the last known totals."""
    previous = _run(
        """
        SELECT total_cases, deaths, recovered FROM covid_cases
        WHERE region_id = ? AND date < ?
        ORDER BY date DESC LIMIT 1
        """,
        [region_id, day.isoformat()],
    ).first() or {}
    total = (previous.get("total_cases") or 0) + delta.new_cases
    deaths = (previous.get("deaths") or 0) + delta.new_deaths
    recovered = (previous.get("recovered") or 0) + delta.new_recovered
    _run(
        UPSERT_CASE_DELTA_SQL,
        [
            day.isoformat(),
            region_id,
            total,
            delta.new_cases,
            max(0, total - deaths - recovered),
            deaths,
            delta.new_deaths,
            recovered,
            delta.new_recovered,
        ],
    )


def refresh_cases(day: date, rng: random.Random) -> dict:
    totals = {"regions": 0, "new_cases": 0, "new_deaths": 0, "new_recovered": 0}
    for region_id in region_ids():
        delta = draw_case_delta(rng)
        upsert_daily_case_delta(day, region_id, delta)
        totals["regions"] += 1
        totals["new_cases"] += delta.new_cases
        totals["new_deaths"] += delta.new_deaths
        totals["new_recovered"] += delta.new_recovered
    logger.info("cases_refreshed", **totals)
    return totals


# =============================================================================
# HOSPITAL OCCUPANCY
# =============================================================================

def simulated_occupancy(capacity: int, band: tuple[float, float], rng: random.Random) -> int:
    """floor(capacity * (low + spread * r)), never above capacity."""
    low, spread = band
    capacity = capacity or 0
    return min(capacity, math.floor(capacity * (low + spread * rng.random())))


def refresh_hospital_occupancy(rng: random.Random) -> int:
    hospitals = _run(
        "SELECT id, total_beds, covid_beds, icu_beds, ventilators FROM hospitals ORDER BY id"
    ).data
    for hospital in hospitals:
        _run(
            """
            UPDATE hospitals SET
                occupied_beds = ?,
                occupied_covid_beds = ?,
                occupied_icu_beds = ?,
                occupied_ventilators = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [
                simulated_occupancy(hospital["total_beds"], TOTAL_OCCUPANCY, rng),
                simulated_occupancy(hospital["covid_beds"], COVID_OCCUPANCY, rng),
                simulated_occupancy(hospital["icu_beds"], ICU_OCCUPANCY, rng),
                simulated_occupancy(hospital["ventilators"], VENTILATOR_OCCUPANCY, rng),
                hospital["id"],
            ],
        )
    logger.info("hospital_occupancy_refreshed", hospitals=len(hospitals))
    return len(hospitals)


# =============================================================================
# VACCINATIONS
# =============================================================================

UPSERT_VACCINATION_SQL = """
    INSERT INTO vaccinations
        (date, region_id, vaccine_type, first_dose, second_dose, booster_dose,
         total_doses, people_vaccinated, people_fully_vaccinated)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(date, region_id, vaccine_type) DO UPDATE SET
        first_dose = first_dose + excluded.first_dose,
        second_dose = second_dose + excluded.second_dose,
        booster_dose = booster_dose + excluded.booster_dose,
        total_doses = total_doses + excluded.total_doses,
        people_vaccinated = people_vaccinated + excluded.first_dose,
        people_fully_vaccinated = people_fully_vaccinated + excluded.second_dose,
        updated_at = CURRENT_TIMESTAMP
"""


def accumulate_vaccinations(day: date, rng: random.Random) -> dict:
    """Add one batch of doses per region for a randomly chosen vaccine."""
    totals = {"first_dose": 0, "second_dose": 0, "booster_dose": 0}
    for region_id in region_ids():
        vaccine_type = rng.choice(VACCINE_TYPES)
        first = rng.randint(*FIRST_DOSE_RANGE)
        second = rng.randint(*SECOND_DOSE_RANGE)
        booster = rng.randint(*BOOSTER_DOSE_RANGE)
        previous = _run(
            """
            SELECT people_vaccinated, people_fully_vaccinated FROM vaccinations
            WHERE region_id = ? AND vaccine_type = ? AND date < ?
            ORDER BY date DESC LIMIT 1
            """,
            [region_id, vaccine_type, day.isoformat()],
        ).first() or {}
        _run(
            UPSERT_VACCINATION_SQL,
            [
                day.isoformat(),
                region_id,
                vaccine_type,
                first,
                second,
                booster,
                first + second + booster,
                (previous.get("people_vaccinated") or 0) + first,
                (previous.get("people_fully_vaccinated") or 0) + second,
            ],
        )
        totals["first_dose"] += first
        totals["second_dose"] += second
        totals["booster_dose"] += booster
    logger.info("vaccinations_accumulated", **totals)
    return totals


# =============================================================================
# DAILY STATISTICS
# =============================================================================

def daily_deltas(today_row: dict, yesterday_row: dict) -> dict:
    """Day-over-day differences of the cumulative counters, floored at 0."""
    total = today_row.get("total_cases") or 0
    deaths = today_row.get("deaths") or 0
    recovered = today_row.get("recovered") or 0
    return {
        "new_cases": max(0, total - (yesterday_row.get("total_cases") or 0)),
        "new_deaths": max(0, deaths - (yesterday_row.get("deaths") or 0)),
        "new_recovered": max(0, recovered - (yesterday_row.get("recovered") or 0)),
        "active_cases": max(0, total - deaths - recovered),
    }


def calculate_daily_statistics(day: date) -> int:
    """Recompute new_* counters for every region that reported on `day` and the day before."""
    yesterday = (day - timedelta(days=1)).isoformat()
    pairs = _run(
        """
        SELECT t.id, t.region_id, t.total_cases, t.deaths, t.recovered,
               y.total_cases AS prev_total_cases, y.deaths AS prev_deaths,
               y.recovered AS prev_recovered
        FROM covid_cases t
        JOIN covid_cases y ON y.region_id = t.region_id AND y.date = ?
        WHERE t.date = ?
        """,
        [yesterday, day.isoformat()],
    ).data
    for row in pairs:
        deltas = daily_deltas(
            row,
            {
                "total_cases": row["prev_total_cases"],
                "deaths": row["prev_deaths"],
                "recovered": row["prev_recovered"],
            },
        )
        _run(
            """
            UPDATE covid_cases SET
                new_cases = ?, new_deaths = ?, new_recovered = ?, active_cases = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [deltas["new_cases"], deltas["new_deaths"], deltas["new_recovered"], deltas["active_cases"], row["id"]],
        )
    logger.info("daily_statistics_calculated", date=day.isoformat(), regions=len(pairs))
    return len(pairs)


def update_trends(day: date) -> dict:
    """Moving averages over the trailing national series, published to the cache."""
    since = (day - timedelta(days=TREND_LOOKBACK_DAYS)).isoformat()
    rows = _run(
        """
        SELECT date,
               SUM(new_cases) AS new_cases,
               SUM(new_deaths) AS new_deaths,
               SUM(new_recovered) AS new_recovered
        FROM covid_cases
        WHERE date >= ? AND date <= ?
        GROUP BY date
        ORDER BY date ASC
        """,
        [since, day.isoformat()],
    ).data
    series = metrics.with_moving_averages(
        rows, {"cases": "new_cases", "deaths": "new_deaths", "recovered": "new_recovered"}
    )
    latest = series[-1] if series and len(series) >= MOVING_AVERAGE_WINDOW else None
    trends = {
        "calculated_at": datetime.now(timezone.utc).isoformat(),
        "days": len(series),
        "latest": latest,
        "series": series,
    }
    app_cache.set(AUTOMATION_CACHE, MOVING_AVERAGES_KEY, trends, ttl=MOVING_AVERAGES_TTL)
    logger.info("trends_updated", days=len(series), latest=latest)
    return trends


# =============================================================================
# WEEKLY REPORT
# =============================================================================

def generate_weekly_report(day: date) -> dict:
    """Summarize case records dated day-7 through day, inclusive, and log it."""
    since = (day - timedelta(days=WEEKLY_REPORT_DAYS)).isoformat()
    report = _run(
        """
        SELECT COUNT(*) AS total_records,
               COALESCE(SUM(new_cases), 0) AS total_new_cases,
               COALESCE(ROUND(AVG(new_cases), 2), 0) AS avg_daily_cases,
               COALESCE(MAX(new_cases), 0) AS max_daily_cases,
               COALESCE(MIN(new_cases), 0) AS min_daily_cases,
               COALESCE(SUM(new_deaths), 0) AS total_new_deaths,
               COALESCE(SUM(new_recovered), 0) AS total_new_recovered
        FROM covid_cases
        WHERE date BETWEEN ? AND ?
        """,
        [since, day.isoformat()],
    ).first() or {}
    report["period_start"] = since
    report["period_end"] = day.isoformat()
    logger.info("weekly_report_generated", **report)
    return report


# =============================================================================
# DATA SOURCE STATUS
# =============================================================================

def record_source_success(source_name: str) -> bool:
    result = execute_query(
        """
        INSERT INTO data_sources (source_name, last_updated, error_count, last_error)
        VALUES (?, CURRENT_TIMESTAMP, 0, NULL)
        ON CONFLICT(source_name) DO UPDATE SET
            last_updated = CURRENT_TIMESTAMP,
            error_count = 0,
            last_error = NULL
        """,
        [source_name],
    )
    return result.success


def record_source_error(source_name: str, message: str) -> bool:
    result = execute_query(
        """
        INSERT INTO data_sources (source_name, last_updated, error_count, last_error)
        VALUES (?, CURRENT_TIMESTAMP, 1, ?)
        ON CONFLICT(source_name) DO UPDATE SET
            last_updated = CURRENT_TIMESTAMP,
            error_count = error_count + 1,
            last_error = excluded.last_error
        """,
        [source_name, message],
    )
    if not result.success:
        logger.error("data_source_status_not_recorded", source=source_name, error=result.error)
    return result.success
