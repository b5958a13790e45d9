"""
Seed the database with Kosovo reference data and synthetic history.

Inserts municipalities, hospitals and testing centers, then generates
daily case, vaccination, testing and age-group rows ending today. Case
counters are cumulative and non-decreasing per region.

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --days 30 --seed 42
"""
import argparse
import math
import random
import sqlite3
import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from covid_api.config import settings
from covid_api.config.constants import AGE_GROUPS, VACCINE_TYPES
from covid_api.dependencies import get_db
from covid_api.middleware.structlog_config import configure as configure_logging
from covid_api.schema import initialize_database

import structlog

logger = structlog.get_logger("covid.scripts.seed")

DEFAULT_CASE_DAYS = 90
VACCINATION_DAYS = 60
TESTING_DAYS = 45
AGE_GROUP_DAYS = 30

# (region code, name, code, population, area_km2)
MUNICIPALITIES = [
    ("PR", "Pristina", "PR-01", 230000, 572.00),
    ("PR", "Podujeva", "PR-02", 89000, 632.00),
    ("PR", "Drenas", "PR-03", 60000, 447.00),
    ("PR", "Lipjan", "PR-04", 58000, 422.00),
    ("PR", "Fushe Kosova", "PR-05", 35000, 74.00),
    ("PR", "Gracanica", "PR-06", 10000, 122.00),
    ("PR", "Obiliq", "PR-07", 21000, 105.00),
    ("MI", "South Mitrovica", "MI-01", 72000, 262.00),
    ("MI", "North Mitrovica", "MI-02", 40000, 138.00),
    ("MI", "Vushtrri", "MI-03", 70000, 344.00),
    ("MI", "Skenderaj", "MI-04", 51000, 369.00),
    ("MI", "Leposaviq", "MI-05", 14000, 539.00),
    ("MI", "Zubin Potok", "MI-06", 6800, 335.00),
    ("MI", "Zvecan", "MI-07", 8500, 122.00),
    ("PE", "Peja", "PE-01", 96000, 602.00),
    ("PE", "Istog", "PE-02", 40000, 351.00),
    ("PE", "Klina", "PE-03", 39000, 307.00),
    ("PE", "Decan", "PE-04", 41000, 298.00),
    ("PZ", "Prizren", "PZ-01", 178000, 640.00),
    ("PZ", "Dragash", "PZ-02", 34000, 434.00),
    ("PZ", "Suhareka", "PZ-03", 60000, 361.00),
    ("PZ", "Rahovec", "PZ-04", 57000, 290.00),
    ("PZ", "Malisheva", "PZ-05", 55000, 317.00),
    ("FE", "Ferizaj", "FE-01", 109000, 345.00),
    ("FE", "Shtime", "FE-02", 28000, 134.00),
    ("FE", "Stimje", "FE-03", 26000, 217.00),
    ("FE", "Kacanik", "FE-04", 35000, 220.00),
    ("FE", "Hani i Elezit", "FE-05", 10000, 84.00),
    ("GJ", "Gjilan", "GJ-01", 91000, 513.00),
    ("GJ", "Vitia", "GJ-02", 47000, 250.00),
    ("GJ", "Kamenica", "GJ-03", 36000, 317.00),
    ("GJ", "Kllokot", "GJ-04", 2500, 27.00),
    ("GJ", "Ranillug", "GJ-05", 3600, 60.00),
    ("GJ", "Partes", "GJ-06", 2000, 35.00),
    ("GJ", "Novo Brdo", "GJ-07", 7000, 204.00),
    ("GK", "Gjakova", "GK-01", 95000, 586.00),
    ("GK", "Rahovec", "GK-02", 58000, 276.00),
    ("GK", "Malisheva", "GK-03", 55000, 317.00),
    ("GK", "Junik", "GK-04", 6500, 54.00),
]

# (name, municipality code, address, phone, email,
#  total_beds, covid_beds, icu_beds, ventilators, is_covid_hospital, lat, lon)
HOSPITALS = [
    ("University Clinical Center of Kosovo", "PR-01", "Rr. Spitalit, Pristina", "+383 38 500 300",
     "info@qkuk.org", 800, 120, 40, 30, True, 42.6629, 21.1655),
    ("Regional Hospital Mitrovica", "MI-01", "Rr. Mbretit Petar, Mitrovica", "+383 28 423 100",
     "hospital@mitrovica.org", 400, 60, 20, 15, True, 42.8914, 20.8664),
    ("Regional Hospital Peja", "PE-01", "Rr. Adem Jashari, Peja", "+383 39 432 200",
     "info@hospital-peja.org", 350, 50, 18, 12, True, 42.6589, 20.2886),
    ("Regional Hospital Prizren", "PZ-01", "Rr. Sami Frasheri, Prizren", "+383 29 243 400",
     "contact@hospital-prizren.org", 450, 70, 25, 18, True, 42.2139, 20.7397),
    ("Regional Hospital Ferizaj", "FE-01", "Rr. UCK, Ferizaj", "+383 290 321 100",
     "info@hospital-ferizaj.org", 300, 45, 15, 10, True, 42.3700, 21.1483),
    ("Regional Hospital Gjilan", "GJ-01", "Rr. Ahmet Krasniqi, Gjilan", "+383 280 372 200",
     "hospital@gjilan.org", 280, 40, 12, 8, True, 42.4611, 21.4694),
    ("Regional Hospital Gjakova", "GK-01", "Rr. Ismail Qemali, Gjakova", "+383 390 323 300",
     "info@hospital-gjakova.org", 320, 48, 16, 12, True, 42.3806, 20.4314),
    ("Private Hospital Acibadem", "PR-01", "Rr. Nena Tereze, Pristina", "+383 38 200 300",
     "info@acibadem-pristina.com", 150, 25, 8, 6, True, 42.6540, 21.1788),
    ("Clinic Denta", "PR-01", "Rr. Bill Clinton, Pristina", "+383 38 248 484",
     "info@denta.org", 80, 15, 5, 3, False, 42.6691, 21.1617),
    ("Health Center Podujeva", "PR-02", "Rr. Adem Jashari, Podujeva", "+383 38 271 023",
     "health@podujeva.org", 60, 10, 3, 2, False, 42.9106, 21.1939),
    ("Health Center Vushtrri", "MI-03", "Rr. Skenderbeu, Vushtrri", "+383 28 372 156",
     "contact@vushtrri-health.org", 70, 12, 4, 2, False, 42.8231, 20.9681),
    ("Health Center Istog", "PE-02", "Rr. Bajram Curri, Istog", "+383 39 451 234",
     "health@istog.org", 45, 8, 2, 1, False, 42.7831, 20.4889),
    ("Health Center Dragash", "PZ-02", "Rr. Nena Tereze, Dragash", "+383 29 278 123",
     "info@dragash-health.org", 40, 6, 2, 1, False, 42.0417, 20.6531),
    ("Health Center Shtime", "FE-02", "Rr. Lidhja e Prizrenit, Shtime", "+383 290 360 234",
     "health@shtime.org", 35, 5, 1, 1, False, 42.4306, 21.0414),
    ("Health Center Vitia", "GJ-02", "Rr. Fehmi Agani, Vitia", "+383 280 380 345",
     "contact@vitia-health.org", 50, 8, 3, 2, False, 42.3206, 21.3581),
]

# (name, municipality code, address, phone, email, test_types, hours, lat, lon)
TESTING_CENTERS = [
    ("National Institute of Public Health - Pristina", "PR-01", "Rr. Mother Teresa, Pristina",
     "+383 38 664 477", "niph@rks-gov.net", "PCR, Antigen, Antibody", "08:00-16:00", 42.6691, 21.1617),
    ("University Clinical Center Lab", "PR-01", "Rr. Spitalit, Pristina",
     "+383 38 500 300", "lab@qkuk.org", "PCR, Antigen", "24/7", 42.6629, 21.1655),
    ("Testing Center Mitrovica", "MI-01", "Rr. Mbretit Petar, Mitrovica",
     "+383 28 423 150", "testing@mitrovica.org", "PCR, Antigen", "08:00-18:00", 42.8914, 20.8664),
    ("Regional Testing Center Peja", "PE-01", "Rr. Adem Jashari, Peja",
     "+383 39 432 250", "testing@peja.org", "PCR, Antigen", "08:00-16:00", 42.6589, 20.2886),
    ("Prizren Testing Facility", "PZ-01", "Rr. Sami Frasheri, Prizren",
     "+383 29 243 450", "testing@prizren.org", "PCR, Antigen", "08:00-18:00", 42.2139, 20.7397),
    ("Ferizaj Health Testing", "FE-01", "Rr. UCK, Ferizaj",
     "+383 290 321 150", "testing@ferizaj.org", "PCR, Antigen", "08:00-16:00", 42.3700, 21.1483),
    ("Gjilan Testing Center", "GJ-01", "Rr. Ahmet Krasniqi, Gjilan",
     "+383 280 372 250", "testing@gjilan.org", "PCR, Antigen", "08:00-16:00", 42.4611, 21.4694),
    ("Gjakova Regional Testing", "GK-01", "Rr. Ismail Qemali, Gjakova",
     "+383 390 323 350", "testing@gjakova.org", "PCR, Antigen", "08:00-16:00", 42.3806, 20.4314),
    ("Private Lab Eurolabs", "PR-01", "Rr. Bill Clinton, Pristina",
     "+383 38 249 500", "info@eurolabs.net", "PCR, Antigen, Antibody", "07:00-19:00", 42.6691, 21.1617),
    ("Synlab Kosovo", "PR-01", "Rr. Nena Tereze, Pristina",
     "+383 38 200 400", "kosovo@synlab.com", "PCR, Antigen", "08:00-17:00", 42.6540, 21.1788),
]

# Older groups carry more cases and a higher fatality share
AGE_CASE_MULTIPLIERS = {"60-69": 2.0, "70-79": 2.0, "80+": 2.0, "20-29": 1.5, "30-39": 1.5}
AGE_DEATH_SHARES = {"80+": 0.1, "70-79": 0.05, "60-69": 0.05}


def _date_range(days: int, end: date):
    start = end - timedelta(days=days)
    return [start + timedelta(days=i) for i in range(days + 1)]


def _region_ids(conn: sqlite3.Connection) -> dict[str, int]:
    return {row["code"]: row["id"] for row in conn.execute("SELECT id, code FROM regions")}


def _municipalities(conn: sqlite3.Connection) -> dict[str, tuple[int, int]]:
    """municipality code -> (municipality id, region id)"""
    return {
        row["code"]: (row["id"], row["region_id"])
        for row in conn.execute("SELECT id, code, region_id FROM municipalities")
    }


def seed_municipalities(conn: sqlite3.Connection) -> int:
    regions = _region_ids(conn)
    rows = [
        (regions[region_code], name, code, population, area)
        for region_code, name, code, population, area in MUNICIPALITIES
    ]
    conn.executemany(
        "INSERT OR IGNORE INTO municipalities (region_id, name, code, population, area_km2) "
        "VALUES (?, ?, ?, ?, ?)",
        rows,
    )
    return len(rows)


def seed_hospitals(conn: sqlite3.Connection) -> int:
    if conn.execute("SELECT COUNT(*) FROM hospitals").fetchone()[0]:
        return 0
    municipalities = _municipalities(conn)
    rows = []
    for name, muni_code, address, phone, email, beds, covid, icu, vents, is_covid, lat, lon in HOSPITALS:
        muni_id, region_id = municipalities[muni_code]
        rows.append((name, region_id, muni_id, address, phone, email, beds, covid, icu, vents,
                     1 if is_covid else 0, lat, lon))
    conn.executemany(
        """
        INSERT INTO hospitals
            (name, region_id, municipality_id, address, phone, email, total_beds, covid_beds,
             icu_beds, ventilators, is_covid_hospital, latitude, longitude)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed_testing_centers(conn: sqlite3.Connection) -> int:
    if conn.execute("SELECT COUNT(*) FROM testing_centers").fetchone()[0]:
        return 0
    municipalities = _municipalities(conn)
    rows = []
    for name, muni_code, address, phone, email, test_types, hours, lat, lon in TESTING_CENTERS:
        muni_id, region_id = municipalities[muni_code]
        rows.append((name, region_id, muni_id, address, phone, email, test_types, hours, 1, lat, lon))
    conn.executemany(
        """
        INSERT INTO testing_centers
            (name, region_id, municipality_id, address, phone, email, test_types,
             operating_hours, is_active, latitude, longitude)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed_covid_cases(conn: sqlite3.Connection, days: int, end: date, rng: random.Random) -> int:
    """Cumulative series per region following a sine-wave trend."""
    rows = []
    for region_id in _region_ids(conn).values():
        total = deaths = recovered = 0
        for i, day in enumerate(_date_range(days, end)):
            trend = math.sin(i * 0.1) * 0.5 + 0.5
            new_cases = int(rng.randint(10, 59) * trend * (0.5 + rng.random() * 0.5))
            active_before = total - deaths - recovered
            new_deaths = min(active_before, int(new_cases * 0.015 + rng.random()))
            new_recovered = min(active_before - new_deaths, int(active_before * 0.08 * (0.5 + rng.random() * 0.5)))
            total += new_cases
            deaths += new_deaths
            recovered += new_recovered
            active = max(0, total - deaths - recovered)
            hospitalized = int(active * 0.15 * (0.5 + rng.random() * 0.5))
            icu = int(hospitalized * 0.2 * (0.5 + rng.random() * 0.5))
            ventilator = int(icu * 0.6 * (0.5 + rng.random() * 0.5))
            rows.append((day.isoformat(), region_id, total, new_cases, active, deaths, new_deaths,
                         recovered, new_recovered, hospitalized, icu, ventilator))
    conn.executemany(
        """
        INSERT OR IGNORE INTO covid_cases
            (date, region_id, total_cases, new_cases, active_cases, deaths, new_deaths,
             recovered, new_recovered, hospitalized, icu_patients, ventilator_patients)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed_vaccinations(conn: sqlite3.Connection, days: int, end: date, rng: random.Random) -> int:
    rows = []
    for region_id in _region_ids(conn).values():
        for vaccine_type in VACCINE_TYPES:
            people = fully = 0
            for day in _date_range(days, end):
                first = rng.randint(50, 249)
                second = rng.randint(30, 179)
                booster = rng.randint(20, 119)
                people += first
                fully += second
                rows.append((day.isoformat(), region_id, vaccine_type, first, second, booster,
                             first + second + booster, people, fully))
    conn.executemany(
        """
        INSERT OR IGNORE INTO vaccinations
            (date, region_id, vaccine_type, first_dose, second_dose, booster_dose,
             total_doses, people_vaccinated, people_fully_vaccinated)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed_testing_data(conn: sqlite3.Connection, days: int, end: date, rng: random.Random) -> int:
    centers = conn.execute("SELECT id, region_id, municipality_id FROM testing_centers").fetchall()
    rows = []
    for day in _date_range(days, end):
        for center in centers:
            pcr = rng.randint(50, 199)
            antigen = rng.randint(100, 299)
            total = pcr + antigen
            positive = int(total * (0.05 + rng.random() * 0.15))
            rows.append((day.isoformat(), center["region_id"], center["municipality_id"], center["id"],
                         total, pcr, antigen, positive, total - positive, rng.randint(0, 9),
                         round(positive / total * 100, 2)))
    conn.executemany(
        """
        INSERT OR IGNORE INTO testing_data
            (date, region_id, municipality_id, testing_center_id, total_tests, pcr_tests,
             antigen_tests, positive_tests, negative_tests, pending_tests, positivity_rate)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed_age_groups(conn: sqlite3.Connection, days: int, end: date, rng: random.Random) -> int:
    rows = []
    for day in _date_range(days, end):
        for region_id in _region_ids(conn).values():
            for group in AGE_GROUPS:
                cases = int(rng.randint(5, 24) * AGE_CASE_MULTIPLIERS.get(group, 1.0))
                deaths = int(cases * AGE_DEATH_SHARES.get(group, 0.01))
                vaccinated = int(cases * 2 * (0.8 + rng.random() * 0.4))
                rows.append((day.isoformat(), region_id, group, cases, deaths, vaccinated))
    conn.executemany(
        """
        INSERT OR IGNORE INTO age_groups (date, region_id, age_group, cases, deaths, vaccinated)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def seed(days: int = DEFAULT_CASE_DAYS, rng: random.Random | None = None, end: date | None = None) -> dict:
    """Seed every table in one transaction. Returns inserted row counts."""
    rng = rng or random.Random()
    end = end or date.today()
    with get_db() as conn:
        counts = {
            "municipalities": seed_municipalities(conn),
            "hospitals": seed_hospitals(conn),
            "testing_centers": seed_testing_centers(conn),
            "covid_cases": seed_covid_cases(conn, days, end, rng),
            "vaccinations": seed_vaccinations(conn, min(days, VACCINATION_DAYS), end, rng),
            "testing_data": seed_testing_data(conn, min(days, TESTING_DAYS), end, rng),
            "age_groups": seed_age_groups(conn, min(days, AGE_GROUP_DAYS), end, rng),
        }
        conn.commit()
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the Kosovo COVID-19 database with synthetic history")
    parser.add_argument("--days", type=int, default=DEFAULT_CASE_DAYS, help="Days of case history (default 90)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    if not initialize_database():
        logger.error("seed_failed", step="initialize_database")
        return 1

    try:
        counts = seed(args.days, random.Random(args.seed))
    except sqlite3.Error as e:
        logger.error("seed_failed", error=str(e))
        return 1

    logger.info("seed_completed", **counts)
    return 0


if __name__ == "__main__":
    sys.exit(main())
