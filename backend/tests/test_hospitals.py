"""
Tests for hospital and capacity endpoints.
"""
PRISTINA = 1
MITROVICA = 2


class TestHospitalReads:
    def test_list_with_availability(self, client, base_url, insert_hospital):
        insert_hospital(total_beds=200, occupied_beds=150)
        body = client.get(f"{base_url}/hospitals").json()
        assert body["total"] == 1
        hospital = body["data"][0]
        assert hospital["available_beds"] == 50
        assert hospital["occupancy_rate"] == "75.00"
        assert hospital["region_name"] == "Pristina"

    def test_filters(self, client, base_url, insert_hospital):
        insert_hospital(name="Full", total_beds=10, occupied_beds=10, is_covid_hospital=0)
        insert_hospital(name="Free", total_beds=10, occupied_beds=2, region_id=MITROVICA)
        names = lambda params: [h["name"] for h in client.get(f"{base_url}/hospitals", params=params).json()["data"]]
        assert names({"has_capacity": "true"}) == ["Free"]
        assert names({"has_capacity": "false"}) == ["Full"]
        assert names({"is_covid_hospital": "false"}) == ["Full"]
        assert names({"region_id": MITROVICA}) == ["Free"]

    def test_get_hospital_not_found(self, client, base_url):
        response = client.get(f"{base_url}/hospitals/42")
        assert response.status_code == 404

    def test_capacity_totals(self, client, base_url, insert_hospital):
        insert_hospital(total_beds=100, occupied_beds=40, ventilators=10)
        insert_hospital(total_beds=300, occupied_beds=160, ventilators=10)
        data = client.get(f"{base_url}/hospitals/capacity").json()["data"]
        assert data["total_hospitals"] == 2
        assert data["total_beds"] == 400
        assert data["available_beds"] == 200
        assert data["occupancy_rate"] == "50.00"
        assert data["ventilator_utilization_rate"] == "0.00"

    def test_capacity_without_hospitals(self, client, base_url):
        data = client.get(f"{base_url}/hospitals/capacity").json()["data"]
        assert data["total_beds"] == 0
        assert data["occupancy_rate"] == "0.00"

    def test_by_region_beds_per_1000(self, client, base_url, insert_hospital):
        insert_hospital(total_beds=477)
        data = client.get(f"{base_url}/hospitals/by-region").json()["data"]
        pristina = next(r for r in data if r["region_id"] == PRISTINA)
        assert pristina["hospital_count"] == 1
        assert pristina["beds_per_1000"] == round(477 / 477312 * 1000, 2)


class TestHospitalWrites:
    def test_create(self, client, base_url):
        response = client.post(f"{base_url}/hospitals", json={
            "name": "New Clinic", "region_id": PRISTINA, "total_beds": 50, "email": "info@clinic.org",
            "latitude": 42.66, "longitude": 21.16,
        })
        assert response.status_code == 201
        hospital_id = response.json()["data"]["id"]
        assert client.get(f"{base_url}/hospitals/{hospital_id}").json()["data"]["total_beds"] == 50

    def test_create_invalid_email(self, client, base_url):
        response = client.post(f"{base_url}/hospitals", json={
            "name": "New Clinic", "region_id": PRISTINA, "email": "not-an-email",
        })
        assert response.status_code == 400

    def test_create_invalid_latitude(self, client, base_url):
        response = client.post(f"{base_url}/hospitals", json={
            "name": "New Clinic", "region_id": PRISTINA, "latitude": 123,
        })
        assert response.status_code == 400

    def test_update_capacity(self, client, base_url, insert_hospital):
        hospital_id = insert_hospital(icu_beds=10)
        response = client.put(f"{base_url}/hospitals/{hospital_id}/capacity", json={"occupied_icu_beds": 7})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["occupied_icu_beds"] == 7
        assert data["available_icu_beds"] == 3
        assert data["icu_occupancy_rate"] == "70.00"

    def test_update_capacity_over_limit(self, client, base_url, insert_hospital):
        hospital_id = insert_hospital(icu_beds=10)
        response = client.put(f"{base_url}/hospitals/{hospital_id}/capacity", json={"occupied_icu_beds": 11})
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_FAILED"

    def test_update_capacity_empty_body(self, client, base_url, insert_hospital):
        hospital_id = insert_hospital()
        response = client.put(f"{base_url}/hospitals/{hospital_id}/capacity", json={})
        assert response.status_code == 400

    def test_update_capacity_missing_hospital(self, client, base_url):
        response = client.put(f"{base_url}/hospitals/999/capacity", json={"occupied_beds": 1})
        assert response.status_code == 404
