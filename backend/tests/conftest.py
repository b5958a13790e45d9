"""
Pytest fixtures for API and service tests.

Every test runs against a fresh SQLite file holding the schema and the
seven regions; nothing touches the configured database.
"""
import os

# Settings are read at import time, so these must precede any covid_api import
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INIT_DB_ON_STARTUP"] = "false"
os.environ["ENABLE_AUTO_UPDATES"] = "false"
os.environ["ENABLE_DOCS"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from covid_api import dependencies
from covid_api.cache import app_cache
from covid_api.dependencies import execute_query
from covid_api.main import app
from covid_api.schema import create_tables, insert_initial_data

PRISTINA = 1
MITROVICA = 2


@pytest.fixture(autouse=True)
def test_db(tmp_path, monkeypatch):
    """Point the gateway at a fresh database with reference data."""
    path = tmp_path / "covid_test.db"
    monkeypatch.setattr(dependencies, "DB_PATH", path)
    assert create_tables()
    assert insert_initial_data()
    app_cache.clear()
    yield path
    app_cache.clear()


@pytest.fixture(scope="module")
def client():
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="module")
def base_url():
    """Base URL for API v1 endpoints."""
    return "/api/v1"


@pytest.fixture
def insert_case():
    """Insert one covid_cases row; active_cases is derived."""
    def _insert(day, region_id=PRISTINA, total=0, deaths=0, recovered=0,
                new_cases=0, new_deaths=0, new_recovered=0, hospitalized=0):
        result = execute_query(
            """
            INSERT INTO covid_cases
                (date, region_id, total_cases, new_cases, active_cases, deaths, new_deaths,
                 recovered, new_recovered, hospitalized)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [day, region_id, total, new_cases, max(0, total - deaths - recovered), deaths,
             new_deaths, recovered, new_recovered, hospitalized],
        )
        assert result.success, result.error
        return result.lastrowid
    return _insert


@pytest.fixture
def insert_hospital():
    def _insert(name="Regional Hospital", region_id=PRISTINA, total_beds=100, covid_beds=20,
                icu_beds=10, ventilators=5, occupied_beds=0, is_covid_hospital=1):
        result = execute_query(
            """
            INSERT INTO hospitals
                (name, region_id, total_beds, covid_beds, icu_beds, ventilators,
                 occupied_beds, is_covid_hospital)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [name, region_id, total_beds, covid_beds, icu_beds, ventilators, occupied_beds, is_covid_hospital],
        )
        assert result.success, result.error
        return result.lastrowid
    return _insert


@pytest.fixture
def insert_center():
    def _insert(name="Testing Center", region_id=PRISTINA, test_types="PCR, Antigen", is_active=1):
        result = execute_query(
            "INSERT INTO testing_centers (name, region_id, test_types, is_active) VALUES (?, ?, ?, ?)",
            [name, region_id, test_types, is_active],
        )
        assert result.success, result.error
        return result.lastrowid
    return _insert
