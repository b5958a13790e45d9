"""
Tests for daily case endpoints (GET/POST /cases/...).
"""
from datetime import date, timedelta

from covid_api.services.case_service import case_service, period_start

PRISTINA = 1
MITROVICA = 2


class TestListCases:
    """GET /cases with filters and pagination."""

    def test_empty_list(self, client, base_url):
        response = client.get(f"{base_url}/cases")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == []
        assert body["total"] == 0
        assert body["pagination"] == {"limit": 100, "offset": 0, "has_more": False}

    def test_newest_first_with_region_names(self, client, base_url, insert_case):
        insert_case("2024-03-01", total=10)
        insert_case("2024-03-02", total=20)
        data = client.get(f"{base_url}/cases").json()["data"]
        assert [row["date"] for row in data] == ["2024-03-02", "2024-03-01"]
        assert data[0]["region_name"] == "Pristina"
        assert data[0]["region_code"] == "PR"

    def test_filter_by_region(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=PRISTINA)
        insert_case("2024-03-01", region_id=MITROVICA)
        data = client.get(f"{base_url}/cases", params={"region_id": MITROVICA}).json()["data"]
        assert len(data) == 1
        assert data[0]["region_id"] == MITROVICA

    def test_date_range_requires_both_ends(self, client, base_url, insert_case):
        """A lone start_date is ignored."""
        for day in ("2024-03-01", "2024-03-05", "2024-03-10"):
            insert_case(day)
        both = client.get(f"{base_url}/cases", params={"start_date": "2024-03-02", "end_date": "2024-03-09"})
        assert [row["date"] for row in both.json()["data"]] == ["2024-03-05"]
        only_start = client.get(f"{base_url}/cases", params={"start_date": "2024-03-02"})
        assert only_start.json()["total"] == 3

    def test_pagination(self, client, base_url, insert_case):
        for day in range(1, 6):
            insert_case(f"2024-03-{day:02d}")
        body = client.get(f"{base_url}/cases", params={"limit": 2, "offset": 2}).json()
        assert body["total"] == 5
        assert len(body["data"]) == 2
        assert body["pagination"]["has_more"] is True

    def test_invalid_date_returns_400(self, client, base_url):
        response = client.get(f"{base_url}/cases", params={"date": "not-a-date"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_FAILED"
        assert body["details"]

    def test_limit_over_maximum_rejected(self, client, base_url):
        assert client.get(f"{base_url}/cases", params={"limit": 5000}).status_code == 400


class TestCaseDetail:
    def test_get_case_with_rates(self, client, base_url, insert_case):
        case_id = insert_case("2024-03-01", total=1000, deaths=15, recovered=900)
        response = client.get(f"{base_url}/cases/{case_id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["active_cases"] == 85
        assert data["case_fatality_rate"] == "1.50"
        assert data["recovery_rate"] == "90.00"
        assert data["active_case_rate"] == "8.50"

    def test_get_case_not_found(self, client, base_url):
        response = client.get(f"{base_url}/cases/9999")
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_latest(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=PRISTINA)
        insert_case("2024-03-03", region_id=MITROVICA)
        assert client.get(f"{base_url}/cases/latest").json()["data"]["date"] == "2024-03-03"
        latest = client.get(f"{base_url}/cases/latest", params={"region_id": PRISTINA}).json()["data"]
        assert latest["date"] == "2024-03-01"

    def test_latest_without_data(self, client, base_url):
        response = client.get(f"{base_url}/cases/latest")
        assert response.status_code == 200
        assert response.json()["data"] is None


class TestCreateCase:
    """POST /cases."""

    def test_create_derives_active_cases(self, client, base_url):
        response = client.post(f"{base_url}/cases", json={
            "date": "2024-03-01", "region_id": PRISTINA, "total_cases": 100, "deaths": 5, "recovered": 80,
        })
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["active_cases"] == 15
        stored = client.get(f"{base_url}/cases/{body['data']['id']}").json()["data"]
        assert stored["total_cases"] == 100

    def test_deaths_exceeding_total_rejected(self, client, base_url):
        response = client.post(f"{base_url}/cases", json={
            "date": "2024-03-01", "region_id": PRISTINA, "total_cases": 10, "deaths": 11,
        })
        assert response.status_code == 400
        assert "Deaths cannot exceed total cases" in response.json()["details"]

    def test_negative_counter_rejected(self, client, base_url):
        response = client.post(f"{base_url}/cases", json={
            "date": "2024-03-01", "region_id": PRISTINA, "new_cases": -3,
        })
        assert response.status_code == 400

    def test_counter_beyond_integer_range_rejected(self, client, base_url):
        """Counters SQLite cannot store are a validation error, not a 500."""
        response = client.post(f"{base_url}/cases", json={
            "date": "2024-03-01", "region_id": PRISTINA, "total_cases": 2**63,
        })
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_FAILED"
        assert [d["field"] for d in body["details"]] == ["total_cases"]
        assert client.get(f"{base_url}/cases").json()["total"] == 0

    def test_missing_date_rejected(self, client, base_url):
        response = client.post(f"{base_url}/cases", json={"region_id": PRISTINA})
        assert response.status_code == 400
        fields = [d["field"] for d in response.json()["details"]]
        assert any("date" in f for f in fields)

    def test_duplicate_day_conflicts(self, client, base_url):
        payload = {"date": "2024-03-01", "region_id": PRISTINA, "total_cases": 1}
        assert client.post(f"{base_url}/cases", json=payload).status_code == 201
        response = client.post(f"{base_url}/cases", json=payload)
        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    def test_unknown_region_rejected(self, client, base_url):
        response = client.post(f"{base_url}/cases", json={"date": "2024-03-01", "region_id": 99})
        assert response.status_code == 400


class TestCaseAggregates:
    """Summary, trends and per-region views."""

    def test_summary_all(self, client, base_url, insert_case):
        insert_case("2024-03-01", new_cases=100, new_deaths=2, new_recovered=50, total=100)
        insert_case("2024-03-02", new_cases=50, new_deaths=1, new_recovered=25, total=150)
        data = client.get(f"{base_url}/cases/summary").json()["data"]
        assert data["period"] == "all"
        assert data["total_new_cases"] == 150
        assert data["total_new_deaths"] == 3
        assert data["mortality_rate"] == "2.00"
        assert data["recovery_rate"] == "50.00"

    def test_summary_invalid_period(self, client, base_url):
        assert client.get(f"{base_url}/cases/summary", params={"period": "yearly"}).status_code == 400

    def test_period_start(self):
        today = date(2024, 3, 31)
        assert period_start("weekly", today) == "2024-03-24"
        assert period_start("daily", today) == "2024-03-31"
        assert period_start("all", today) is None

    def test_trends_moving_average(self, insert_case):
        today = date(2024, 3, 31)
        for offset in range(10):
            day = today - timedelta(days=9 - offset)
            insert_case(day.isoformat(), region_id=PRISTINA, new_cases=10 + offset)
            insert_case(day.isoformat(), region_id=MITROVICA, new_cases=10)
        result = case_service.trends(days=30, today=today)
        data = result["data"]
        assert len(data) == 10
        assert data[0]["new_cases"] == 20
        assert "ma_7_cases" not in data[5]
        # Days 0-6: sums 20..26, mean 23
        assert data[6]["ma_7_cases"] == 23.0
        assert result["analysis"]["moving_average_available"] is True

    def test_trends_days_bounds(self, client, base_url):
        assert client.get(f"{base_url}/cases/trends", params={"days": 3}).status_code == 400

    def test_by_region_cases_per_100k(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=PRISTINA, total=4773)
        data = client.get(f"{base_url}/cases/by-region", params={"date": "2024-03-01"}).json()["data"]
        assert len(data) == 7
        pristina = next(r for r in data if r["region_id"] == PRISTINA)
        assert pristina["total_cases"] == 4773
        assert pristina["cases_per_100k"] == round(4773 / 477312 * 100000, 2)
        assert data[0]["region_id"] == PRISTINA
