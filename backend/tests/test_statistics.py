"""
Tests for national statistics endpoints.
"""
from datetime import date, timedelta

from covid_api.dependencies import execute_query
from covid_api.services.statistics_service import statistics_service

PRISTINA = 1
MITROVICA = 2
KOSOVO_POPULATION = 1760133


class TestOverview:
    def test_empty_database(self, client, base_url):
        response = client.get(f"{base_url}/statistics/overview")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["cases"]["total_cases"] == 0
        assert data["cases"]["latest_date"] is None
        assert data["cases"]["case_fatality_rate"] == "0.00"
        assert data["population"]["total_population"] == KOSOVO_POPULATION
        assert data["population"]["regions"] == 7

    def test_latest_day_totals(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=PRISTINA, total=500, deaths=5)
        insert_case("2024-03-02", region_id=PRISTINA, total=1000, deaths=10, recovered=800)
        insert_case("2024-03-02", region_id=MITROVICA, total=1000, deaths=30, recovered=800)
        cases = client.get(f"{base_url}/statistics/overview").json()["data"]["cases"]
        assert cases["latest_date"] == "2024-03-02"
        assert cases["total_cases"] == 2000
        assert cases["deaths"] == 40
        assert cases["case_fatality_rate"] == "2.00"
        assert cases["recovery_rate"] == "80.00"

    def test_overview_is_cached(self, insert_case):
        """A second call within the TTL returns the cached snapshot."""
        first = statistics_service.overview()
        insert_case("2024-03-02", total=1000)
        assert statistics_service.overview() == first

    def test_api_write_refreshes_overview(self, client, base_url):
        """Creating a record through the API drops the cached snapshot."""
        assert client.get(f"{base_url}/statistics/overview").json()["data"]["cases"]["total_cases"] == 0
        response = client.post(f"{base_url}/cases", json={"date": "2024-03-02", "region_id": PRISTINA, "total_cases": 250})
        assert response.status_code == 201
        cases = client.get(f"{base_url}/statistics/overview").json()["data"]["cases"]
        assert cases["total_cases"] == 250

    def test_capacity_update_refreshes_overview(self, client, base_url, insert_hospital):
        hospital_id = insert_hospital(total_beds=100)
        assert statistics_service.overview()["hospital_capacity"]["occupied_beds"] == 0
        response = client.put(f"{base_url}/hospitals/{hospital_id}/capacity", json={"occupied_beds": 40})
        assert response.status_code == 200
        assert statistics_service.overview()["hospital_capacity"]["occupied_beds"] == 40

    def test_failed_write_keeps_cache(self, client, base_url):
        first = statistics_service.overview()
        response = client.post(f"{base_url}/cases", json={"date": "2024-03-02", "region_id": 99})
        assert response.status_code == 400
        assert statistics_service.overview() is first


class TestTrends:
    def _series(self, insert_case, today, days, per_day):
        for offset in range(days):
            day = today - timedelta(days=days - 1 - offset)
            insert_case(day.isoformat(), new_cases=per_day(offset), new_deaths=1)

    def test_short_series_has_no_weekly_trend(self, insert_case):
        today = date(2024, 3, 31)
        self._series(insert_case, today, 10, lambda i: 10)
        result = statistics_service.trends(30, today=today)
        assert len(result["data"]) == 10
        assert "weekly_trend" not in result["analysis"]
        assert result["analysis"]["total_new_cases"] == 100

    def test_weekly_trend_increasing(self, insert_case):
        today = date(2024, 3, 31)
        self._series(insert_case, today, 14, lambda i: 10 if i < 7 else 20)
        result = statistics_service.trends(30, today=today)
        analysis = result["analysis"]
        assert analysis["weekly_trend"]["previous_week_cases"] == 70
        assert analysis["weekly_trend"]["current_week_cases"] == 140
        assert analysis["weekly_trend"]["change_pct"] == "100.00"
        assert analysis["trend_direction"] == "increasing"
        assert analysis["peak_cases"]["value"] == 20
        assert result["data"][7]["cases_change_pct"] == "100.00"
        assert result["data"][6]["ma_7_cases"] == 10.0

    def test_invalid_period(self, client, base_url):
        response = client.get(f"{base_url}/statistics/trends", params={"period": 10})
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_FAILED"

    def test_valid_period(self, client, base_url):
        assert client.get(f"{base_url}/statistics/trends", params={"period": 14}).status_code == 200


class TestRegionalAndDemographics:
    def test_regional_summary(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=MITROVICA, total=1976)
        body = client.get(f"{base_url}/statistics/regional").json()["data"]
        assert len(body["regions"]) == 7
        assert body["summary"]["highest_cases_per_100k"]["region"] == "Mitrovica"

    def test_demographics_shares(self, client, base_url):
        for group, cases, deaths in (("80+", 100, 10), ("20-29", 300, 0)):
            execute_query(
                "INSERT INTO age_groups (date, region_id, age_group, cases, deaths, vaccinated) "
                "VALUES ('2024-03-01', 1, ?, ?, ?, 0)",
                [group, cases, deaths],
            )
        body = client.get(f"{base_url}/statistics/demographics").json()["data"]
        assert [g["age_group"] for g in body["age_groups"]] == ["20-29", "80+"]
        older = body["age_groups"][1]
        assert older["case_percentage"] == "25.00"
        assert older["death_percentage"] == "100.00"
        assert older["case_fatality_rate"] == "10.00"
        assert body["totals"]["cases"] == 400


class TestComparison:
    def test_windows_and_trend(self, insert_case):
        today = date(2024, 3, 14)
        for offset in range(14):
            day = today - timedelta(days=13 - offset)
            insert_case(day.isoformat(), new_cases=10 if offset < 7 else 5, hospitalized=4)
        result = statistics_service.comparison(7, today=today)
        assert result["current_period"] == {"start": "2024-03-08", "end": "2024-03-14"}
        assert result["previous_period"] == {"start": "2024-03-01", "end": "2024-03-07"}
        cases = result["comparison"]["cases"]
        assert cases["current"] == 35
        assert cases["previous"] == 70
        assert cases["change"] == "-50.00"
        assert cases["trend"] == "decreasing"
        assert result["comparison"]["hospitalized"]["trend"] == "stable"

    def test_compare_days_bounds(self, client, base_url):
        assert client.get(f"{base_url}/statistics/comparison", params={"compare_days": 3}).status_code == 400
