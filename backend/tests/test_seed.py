"""
Tests for the synthetic seed script.
"""
import random
from datetime import date

from covid_api.dependencies import execute_query
from scripts.seed_data import HOSPITALS, MUNICIPALITIES, TESTING_CENTERS, seed

END = date(2024, 3, 31)


def _count(table):
    return execute_query(f"SELECT COUNT(*) AS n FROM {table}").first()["n"]


class TestSeed:
    def test_row_counts(self):
        counts = seed(days=10, rng=random.Random(1), end=END)
        # 11 days inclusive of both ends
        assert counts == {
            "municipalities": len(MUNICIPALITIES),
            "hospitals": len(HOSPITALS),
            "testing_centers": len(TESTING_CENTERS),
            "covid_cases": 7 * 11,
            "vaccinations": 7 * 4 * 11,
            "testing_data": len(TESTING_CENTERS) * 11,
            "age_groups": 7 * 9 * 11,
        }
        assert _count("covid_cases") == 77
        assert _count("municipalities") == len(MUNICIPALITIES) == 39

    def test_reseed_keeps_reference_rows(self):
        seed(days=5, rng=random.Random(1), end=END)
        counts = seed(days=5, rng=random.Random(2), end=END)
        assert counts["hospitals"] == 0
        assert counts["testing_centers"] == 0
        assert _count("hospitals") == len(HOSPITALS)
        assert _count("covid_cases") == 7 * 6

    def test_cumulative_counters_never_decrease(self):
        seed(days=30, rng=random.Random(3), end=END)
        rows = execute_query(
            "SELECT region_id, total_cases, deaths, recovered, active_cases FROM covid_cases "
            "ORDER BY region_id, date"
        ).data
        previous = {}
        for row in rows:
            last = previous.get(row["region_id"])
            if last:
                assert row["total_cases"] >= last["total_cases"]
                assert row["deaths"] >= last["deaths"]
                assert row["recovered"] >= last["recovered"]
            assert row["active_cases"] == row["total_cases"] - row["deaths"] - row["recovered"]
            previous[row["region_id"]] = row

    def test_hospitals_match_municipality_region(self):
        seed(days=1, rng=random.Random(4), end=END)
        mismatched = execute_query(
            """
            SELECT COUNT(*) AS n FROM hospitals h
            JOIN municipalities m ON m.id = h.municipality_id
            WHERE m.region_id != h.region_id
            """
        ).first()["n"]
        assert mismatched == 0

    def test_seeded_data_serves_endpoints(self, client, base_url):
        seed(days=14, rng=random.Random(5), end=date.today())
        overview = client.get(f"{base_url}/statistics/overview").json()["data"]
        assert overview["cases"]["total_cases"] > 0
        assert overview["hospital_capacity"]["total_beds"] > 0
        positivity = client.get(f"{base_url}/testing/summary").json()
        assert positivity["success"] is True
