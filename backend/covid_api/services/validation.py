"""
Write-path validation rules that a request schema cannot express.
"""
from __future__ import annotations

from dataclasses import dataclass, field

CASE_COUNTERS = (
    "total_cases",
    "new_cases",
    "active_cases",
    "deaths",
    "new_deaths",
    "recovered",
    "new_recovered",
    "hospitalized",
    "icu_patients",
    "ventilator_patients",
)

# occupied column -> capacity column
OCCUPANCY_LIMITS = {
    "occupied_beds": "total_beds",
    "occupied_covid_beds": "covid_beds",
    "occupied_icu_beds": "icu_beds",
    "occupied_ventilators": "ventilators",
}


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)


def validate_case_record(record: dict) -> ValidationResult:
    """Check a daily case record before it is written."""
    result = ValidationResult()
    if not record.get("date"):
        result.fail("Date is required")

    for counter in CASE_COUNTERS:
        value = record.get(counter)
        if value is not None and value < 0:
            result.fail(f"{counter} cannot be negative")

    total = record.get("total_cases") or 0
    if (record.get("deaths") or 0) > total:
        result.fail("Deaths cannot exceed total cases")
    if (record.get("recovered") or 0) > total:
        result.fail("Recovered cases cannot exceed total cases")
    return result


def validate_occupancy(current: dict, updates: dict) -> ValidationResult:
    """Occupied counters must stay within the hospital's capacity."""
    result = ValidationResult()
    for occupied, capacity in OCCUPANCY_LIMITS.items():
        if occupied not in updates:
            continue
        limit = current.get(capacity) or 0
        if updates[occupied] > limit:
            result.fail(f"{occupied} ({updates[occupied]}) exceeds {capacity} ({limit})")
    return result
