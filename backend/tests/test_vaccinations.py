"""
Tests for vaccination endpoints.
"""
PRISTINA = 1
MITROVICA = 2


def _record(client, base_url, **overrides):
    payload = {"date": "2024-03-01", "region_id": PRISTINA, "vaccine_type": "Pfizer-BioNTech",
               "first_dose": 100, "second_dose": 50, "booster_dose": 10,
               "people_vaccinated": 1000, "people_fully_vaccinated": 500}
    payload.update(overrides)
    return client.post(f"{base_url}/vaccinations", json=payload)


class TestRecordVaccination:
    """POST /vaccinations inserts or accumulates."""

    def test_insert(self, client, base_url):
        response = _record(client, base_url)
        assert response.status_code == 201
        assert response.json()["data"]["total_doses"] == 160

    def test_same_key_accumulates_doses(self, client, base_url):
        """A second post for the same (date, region, vaccine) adds doses."""
        _record(client, base_url)
        _record(client, base_url, first_dose=10, second_dose=0, booster_dose=0,
                people_vaccinated=900, people_fully_vaccinated=600)
        row = client.get(f"{base_url}/vaccinations").json()["data"]
        assert len(row) == 1
        assert row[0]["first_dose"] == 110
        assert row[0]["total_doses"] == 170
        # Cumulative people counts keep the larger value
        assert row[0]["people_vaccinated"] == 1000
        assert row[0]["people_fully_vaccinated"] == 600

    def test_missing_vaccine_type_uses_default(self, client, base_url):
        _record(client, base_url, vaccine_type=None)
        _record(client, base_url, vaccine_type=None)
        rows = client.get(f"{base_url}/vaccinations").json()["data"]
        assert len(rows) == 1
        assert rows[0]["vaccine_type"] == "Unspecified"

    def test_negative_dose_rejected(self, client, base_url):
        assert _record(client, base_url, first_dose=-1).status_code == 400


class TestVaccinationReads:
    def test_list_has_rates(self, client, base_url):
        _record(client, base_url, people_vaccinated=47731)
        data = client.get(f"{base_url}/vaccinations", params={"region_id": PRISTINA}).json()["data"]
        assert data[0]["region_name"] == "Pristina"
        assert data[0]["vaccination_rate"] == "10.00"

    def test_summary_sums_people_per_vaccine(self, client, base_url):
        _record(client, base_url, vaccine_type="Pfizer-BioNTech", people_vaccinated=1000)
        _record(client, base_url, vaccine_type="Moderna", people_vaccinated=500)
        _record(client, base_url, date="2024-03-02", vaccine_type="Moderna", people_vaccinated=700)
        body = client.get(f"{base_url}/vaccinations/summary").json()["data"]
        assert body["summary"]["people_vaccinated"] == 1700
        assert body["summary"]["total_doses"] == 480
        assert {row["vaccine_type"] for row in body["vaccine_types"]} == {"Pfizer-BioNTech", "Moderna"}

    def test_by_region_sorted_by_rate(self, client, base_url):
        _record(client, base_url, region_id=MITROVICA, people_vaccinated=50000)
        _record(client, base_url, region_id=PRISTINA, people_vaccinated=100)
        data = client.get(f"{base_url}/vaccinations/by-region").json()["data"]
        assert data[0]["region_id"] == MITROVICA
        assert len(data) == 7

    def test_coverage(self, client, base_url):
        _record(client, base_url, people_vaccinated=47731, people_fully_vaccinated=0)
        body = client.get(f"{base_url}/vaccinations/coverage").json()["data"]
        pristina = next(r for r in body["regions"] if r["region_id"] == PRISTINA)
        assert pristina["partial_coverage"] == "10.00"
        assert pristina["unvaccinated_rate"] == "90.00"
        assert body["national"]["people_vaccinated"] == 47731
        assert "highest_coverage" in body["analysis"]

    def test_types(self, client, base_url):
        _record(client, base_url, vaccine_type="AstraZeneca")
        data = client.get(f"{base_url}/vaccinations/types").json()["data"]
        assert data[0]["vaccine_type"] == "AstraZeneca"
        assert data[0]["regions_used"] == 1

    def test_progress_empty(self, client, base_url):
        response = client.get(f"{base_url}/vaccinations/progress")
        assert response.status_code == 200
        assert response.json()["data"] == []
