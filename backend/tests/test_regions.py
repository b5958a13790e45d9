"""
Tests for region endpoints.
"""
from datetime import date, timedelta

PRISTINA = 1
MITROVICA = 2


class TestRegionReads:
    def test_list_regions(self, client, base_url):
        body = client.get(f"{base_url}/regions").json()
        assert body["total"] == 7
        names = [r["name"] for r in body["data"]]
        assert names == sorted(names)
        assert "total_cases" not in body["data"][0] or body["data"][0]["total_cases"] is None

    def test_list_with_stats_uses_latest_day(self, client, base_url, insert_case):
        """Cumulative counters come from the most recent day, not a sum."""
        insert_case("2024-03-01", region_id=PRISTINA, total=100)
        insert_case("2024-03-02", region_id=PRISTINA, total=150)
        data = client.get(f"{base_url}/regions", params={"include_stats": "true"}).json()["data"]
        pristina = next(r for r in data if r["id"] == PRISTINA)
        assert pristina["total_cases"] == 150
        assert pristina["cases_per_100k"] == round(150 / 477312 * 100000, 2)

    def test_get_region_detail(self, client, base_url, insert_case, insert_hospital):
        insert_case("2024-03-01", region_id=PRISTINA, total=1000, deaths=20, recovered=500)
        insert_hospital(total_beds=954)
        data = client.get(f"{base_url}/regions/{PRISTINA}").json()["data"]
        assert data["case_fatality_rate"] == "2.00"
        assert data["recovery_rate"] == "50.00"
        assert data["population_density"] == round(477312 / 2470, 2)
        assert data["hospital_bed_ratio"] == round(954 / 477312 * 1000, 2)
        assert data["latest_case_date"] == "2024-03-01"

    def test_get_region_not_found(self, client, base_url):
        assert client.get(f"{base_url}/regions/99").status_code == 404

    def test_municipalities(self, client, base_url):
        response = client.get(f"{base_url}/regions/{PRISTINA}/municipalities")
        assert response.status_code == 200
        assert response.json()["data"] == []
        assert client.get(f"{base_url}/regions/99/municipalities").status_code == 404

    def test_trends(self, client, base_url, insert_case):
        today = date.today()
        for offset in range(8):
            insert_case((today - timedelta(days=7 - offset)).isoformat(), region_id=MITROVICA, new_cases=7)
        body = client.get(f"{base_url}/regions/{MITROVICA}/trends", params={"days": 10}).json()["data"]
        assert body["region"]["code"] == "MI"
        assert len(body["data"]) == 8
        assert body["data"][-1]["ma_7_cases"] == 7.0

    def test_comparison(self, client, base_url, insert_case):
        insert_case("2024-03-01", region_id=PRISTINA, total=100)
        insert_case("2024-03-01", region_id=MITROVICA, total=300)
        body = client.get(f"{base_url}/regions/comparison", params={"metric": "cases"}).json()["data"]
        assert body["metric"] == "cases"
        assert body["analysis"]["highest"]["region_id"] == MITROVICA
        assert body["analysis"]["lowest"]["value"] == 0
        assert body["analysis"]["average"] == round(400 / 7, 2)
        assert body["analysis"]["median"] == 0

    def test_comparison_invalid_metric(self, client, base_url):
        response = client.get(f"{base_url}/regions/comparison", params={"metric": "weather"})
        assert response.status_code == 400


class TestRegionWrites:
    def test_create_region(self, client, base_url):
        response = client.post(f"{base_url}/regions", json={
            "name": "Test Region", "code": "TR", "population": 1000, "area_km2": 10.5,
        })
        assert response.status_code == 201
        region_id = response.json()["data"]["id"]
        assert client.get(f"{base_url}/regions/{region_id}").json()["data"]["population_density"] == round(1000 / 10.5, 2)

    def test_create_duplicate_code(self, client, base_url):
        response = client.post(f"{base_url}/regions", json={"name": "Another", "code": "PR"})
        assert response.status_code == 409

    def test_update_region(self, client, base_url):
        response = client.put(f"{base_url}/regions/{PRISTINA}", json={"population": 500000})
        assert response.status_code == 200
        assert response.json()["data"]["population"] == 500000

    def test_update_empty(self, client, base_url):
        assert client.put(f"{base_url}/regions/{PRISTINA}", json={}).status_code == 400

    def test_update_missing(self, client, base_url):
        assert client.put(f"{base_url}/regions/99", json={"population": 1}).status_code == 404

    def test_update_to_duplicate_name(self, client, base_url):
        response = client.put(f"{base_url}/regions/{PRISTINA}", json={"name": "Mitrovica"})
        assert response.status_code == 409
