"""
Database schema and reference data.

create_tables() is idempotent; insert_initial_data() only adds rows
that are missing. Both run through the query gateway.
"""
import structlog

from .config import settings
from .config.constants import (
    KOSOVO_REGIONS,
    SIMULATION_SOURCES,
    SOURCE_DISEASE_SH,
    SOURCE_MOH,
    SOURCE_WHO,
)
from .dependencies import execute_query, execute_script

logger = structlog.get_logger("covid.schema")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS regions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    code TEXT NOT NULL UNIQUE,
    population INTEGER DEFAULT 0,
    area_km2 REAL DEFAULT 0,
    capital TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS municipalities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    region_id INTEGER NOT NULL REFERENCES regions(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    code TEXT NOT NULL UNIQUE,
    population INTEGER DEFAULT 0,
    area_km2 REAL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS covid_cases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date DATE NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    municipality_id INTEGER REFERENCES municipalities(id) ON DELETE SET NULL,
    total_cases INTEGER DEFAULT 0,
    new_cases INTEGER DEFAULT 0,
    active_cases INTEGER DEFAULT 0,
    deaths INTEGER DEFAULT 0,
    new_deaths INTEGER DEFAULT 0,
    recovered INTEGER DEFAULT 0,
    new_recovered INTEGER DEFAULT 0,
    hospitalized INTEGER DEFAULT 0,
    icu_patients INTEGER DEFAULT 0,
    ventilator_patients INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (date, region_id)
);
CREATE INDEX IF NOT EXISTS idx_cases_date ON covid_cases(date);
CREATE INDEX IF NOT EXISTS idx_cases_region_date ON covid_cases(region_id, date);

CREATE TABLE IF NOT EXISTS hospitals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    municipality_id INTEGER REFERENCES municipalities(id) ON DELETE SET NULL,
    address TEXT,
    phone TEXT,
    email TEXT,
    total_beds INTEGER DEFAULT 0,
    covid_beds INTEGER DEFAULT 0,
    icu_beds INTEGER DEFAULT 0,
    ventilators INTEGER DEFAULT 0,
    occupied_beds INTEGER DEFAULT 0,
    occupied_covid_beds INTEGER DEFAULT 0,
    occupied_icu_beds INTEGER DEFAULT 0,
    occupied_ventilators INTEGER DEFAULT 0,
    is_covid_hospital INTEGER DEFAULT 0,
    latitude REAL,
    longitude REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS vaccinations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date DATE NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    municipality_id INTEGER REFERENCES municipalities(id) ON DELETE SET NULL,
    vaccine_type TEXT NOT NULL DEFAULT 'Unspecified',
    first_dose INTEGER DEFAULT 0,
    second_dose INTEGER DEFAULT 0,
    booster_dose INTEGER DEFAULT 0,
    total_doses INTEGER DEFAULT 0,
    people_vaccinated INTEGER DEFAULT 0,
    people_fully_vaccinated INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (date, region_id, vaccine_type)
);
CREATE INDEX IF NOT EXISTS idx_vaccinations_date ON vaccinations(date);
CREATE INDEX IF NOT EXISTS idx_vaccinations_region_date ON vaccinations(region_id, date);

CREATE TABLE IF NOT EXISTS testing_centers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    municipality_id INTEGER REFERENCES municipalities(id) ON DELETE SET NULL,
    address TEXT,
    phone TEXT,
    email TEXT,
    test_types TEXT,
    operating_hours TEXT,
    is_active INTEGER DEFAULT 1,
    latitude REAL,
    longitude REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS testing_data (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date DATE NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    municipality_id INTEGER REFERENCES municipalities(id) ON DELETE SET NULL,
    testing_center_id INTEGER REFERENCES testing_centers(id) ON DELETE SET NULL,
    total_tests INTEGER DEFAULT 0,
    pcr_tests INTEGER DEFAULT 0,
    antigen_tests INTEGER DEFAULT 0,
    positive_tests INTEGER DEFAULT 0,
    negative_tests INTEGER DEFAULT 0,
    pending_tests INTEGER DEFAULT 0,
    positivity_rate REAL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (date, region_id, testing_center_id)
);
CREATE INDEX IF NOT EXISTS idx_testing_date ON testing_data(date);
CREATE INDEX IF NOT EXISTS idx_testing_region_date ON testing_data(region_id, date);

CREATE TABLE IF NOT EXISTS age_groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date DATE NOT NULL,
    region_id INTEGER REFERENCES regions(id) ON DELETE SET NULL,
    age_group TEXT NOT NULL,
    cases INTEGER DEFAULT 0,
    deaths INTEGER DEFAULT 0,
    vaccinated INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (date, region_id, age_group)
);
CREATE INDEX IF NOT EXISTS idx_age_groups_date ON age_groups(date);

CREATE TABLE IF NOT EXISTS data_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_name TEXT NOT NULL UNIQUE,
    source_url TEXT,
    last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    update_frequency TEXT,
    is_active INTEGER DEFAULT 1,
    error_count INTEGER DEFAULT 0,
    last_error TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def create_tables() -> bool:
    """Create every table and index. Returns False if the script failed."""
    result = execute_script(SCHEMA_SQL)
    if result.success:
        logger.info("schema_ready")
    return result.success


def insert_initial_data() -> bool:
    """Insert the seven Kosovo regions and the data-source rows."""
    ok = True
    for name, code, population, area_km2, capital in KOSOVO_REGIONS:
        result = execute_query(
            "INSERT OR IGNORE INTO regions (name, code, population, area_km2, capital) "
            "VALUES (?, ?, ?, ?, ?)",
            [name, code, population, area_km2, capital],
        )
        ok = ok and result.success

    sources = [
        (SOURCE_WHO, settings.WHO_DATA_URL, "daily"),
        (SOURCE_DISEASE_SH, settings.DISEASE_SH_URL, "hourly"),
        (SOURCE_MOH, settings.MOH_URL, "daily"),
    ]
    sources += [(name, None, frequency) for name, frequency in SIMULATION_SOURCES]
    for source_name, source_url, frequency in sources:
        result = execute_query(
            "INSERT OR IGNORE INTO data_sources (source_name, source_url, update_frequency, is_active) "
            "VALUES (?, ?, ?, 1)",
            [source_name, source_url, frequency],
        )
        ok = ok and result.success

    if ok:
        logger.info("reference_data_ready", regions=len(KOSOVO_REGIONS), data_sources=len(sources))
    return ok


def initialize_database() -> bool:
    return create_tables() and insert_initial_data()
