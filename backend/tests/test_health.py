"""
Tests for health, diagnostics and data freshness endpoints.
"""
import pytest

from covid_api import dependencies
from covid_api.services.automation import AutomationService
from covid_api.services.health_service import freshness_status, overall_freshness


class FakeJob:
    def __init__(self, job_id):
        self.id = job_id

    def remove(self):
        pass


class FakeScheduler:
    def __init__(self, **kwargs):
        self.jobs = []

    def add_job(self, func, trigger, args=None, id=None, **kwargs):
        self.jobs.append(id)
        return FakeJob(id)

    def start(self):
        pass

    def shutdown(self, wait=True):
        pass


class TestHealth:
    def test_healthy(self, client, base_url):
        response = client.get(f"{base_url}/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"]["status"] == "connected"
        assert body["database"]["tables"]["regions"] == 7
        assert body["automation"]["running"] is False
        assert body["memory_mb"] > 0

    def test_unhealthy_when_database_unreachable(self, client, base_url, tmp_path, monkeypatch):
        monkeypatch.setattr(dependencies, "DB_PATH", tmp_path / "missing" / "covid.db")
        response = client.get(f"{base_url}/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert client.get(f"{base_url}/health/database").status_code == 503

    def test_database_details(self, client, base_url):
        body = client.get(f"{base_url}/health/database").json()
        assert body["database"]["sqlite_version"]
        tables = {t["table"]: t for t in body["database"]["tables"]}
        assert len(tables) == 9
        assert tables["regions"]["row_count"] == 7
        assert tables["regions"]["status"] == "ok"

    def test_metrics(self, client, base_url):
        body = client.get(f"{base_url}/health/metrics").json()
        assert body["rate_limit"]["enabled"] is False
        assert body["process"]["pid"] > 0
        assert body["activity"]["case_records_last_30_days"] == 0
        assert isinstance(body["cache"], dict)


class TestAutomationHealth:
    def test_stopped_returns_503(self, client, base_url):
        response = client.get(f"{base_url}/health/automation")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "stopped"
        assert body["auto_updates_enabled"] is False
        names = {s["source_name"] for s in body["data_sources"]}
        assert "Kosovo Health Ministry Simulation" in names

    def test_running(self, client, base_url, monkeypatch):
        service = AutomationService(scheduler_factory=FakeScheduler)
        service.start()
        monkeypatch.setattr(client.app.state, "automation", service)
        response = client.get(f"{base_url}/health/automation")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "running"
        assert body["automation"]["job_count"] == 3
        assert body["automation"]["schedules"]["daily_stats"] == "0 0 * * *"
        service.stop()


class TestDataFreshness:
    @pytest.mark.parametrize("hours,expected", [
        (None, "no_data"),
        (0, "fresh"),
        (23.9, "fresh"),
        (24, "stale"),
        (71.9, "stale"),
        (72, "very_stale"),
        (500, "very_stale"),
    ])
    def test_buckets(self, hours, expected):
        assert freshness_status(hours) == expected

    @pytest.mark.parametrize("statuses,expected", [
        (["fresh", "fresh"], "fresh"),
        (["fresh", "stale"], "stale"),
        (["fresh", "very_stale", "stale"], "very_stale"),
        (["no_data", "no_data"], "no_data"),
        (["fresh", "no_data"], "stale"),
    ])
    def test_overall(self, statuses, expected):
        assert overall_freshness(statuses) == expected

    def test_endpoint_empty_tables(self, client, base_url):
        body = client.get(f"{base_url}/health/data-freshness").json()
        assert body["overall_status"] == "no_data"
        assert {t["table"] for t in body["data"]} == {"covid_cases", "vaccinations", "hospitals", "testing_data"}
        assert set(body["legend"]) == {"fresh", "stale", "very_stale", "no_data"}

    def test_endpoint_fresh_table(self, client, base_url, insert_case):
        insert_case("2024-03-01")
        body = client.get(f"{base_url}/health/data-freshness").json()
        cases = next(t for t in body["data"] if t["table"] == "covid_cases")
        assert cases["status"] == "fresh"
        assert cases["latest_date"] == "2024-03-01"
        assert cases["total_records"] == 1
        assert body["overall_status"] == "stale"
