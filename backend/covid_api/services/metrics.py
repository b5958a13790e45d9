"""
Derived-metric calculators.

Pure functions over date-ascending daily aggregates. Rates are rendered
as fixed 2-decimal strings and never divide by zero: a missing or zero
denominator yields "0.00".
"""
from __future__ import annotations

from typing import Iterable, Sequence

from ..config.constants import MOVING_AVERAGE_WINDOW, TREND_THRESHOLD_PCT

Number = int | float


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def moving_average(values: Sequence[Number | None], window: int = MOVING_AVERAGE_WINDOW) -> list[float | None]:
    """Trailing simple moving average.

    Entry i is the mean of values[i - window + 1 .. i]; entries before a
    full window exist are None.
    """
    result: list[float | None] = []
    for i in range(len(values)):
        if i < window - 1:
            result.append(None)
            continue
        chunk = values[i - window + 1:i + 1]
        result.append(sum(_num(v) for v in chunk) / window)
    return result


def with_moving_averages(
    rows: Sequence[dict],
    fields: dict[str, str],
    window: int = MOVING_AVERAGE_WINDOW,
    digits: int = 2,
) -> list[dict]:
    """Copy rows, adding ma_<window>_<name> keys where a full window exists.

    Args:
        rows: Date-ascending rows
        fields: Maps output name to the source column, e.g. {"cases": "new_cases"}
    """
    out = [dict(row) for row in rows]
    for name, column in fields.items():
        averages = moving_average([row.get(column) for row in rows], window)
        for row, avg in zip(out, averages):
            if avg is not None:
                row[f"ma_{window}_{name}"] = round(avg, digits)
    return out


def percentage_change(previous: Number | None, current: Number | None) -> str:
    """(current - previous) / previous * 100 as a 2-decimal string.

    A zero or missing previous value yields "0.00", which hides growth
    from zero.
    """
    if not previous:
        return "0.00"
    return f"{(_num(current) - _num(previous)) / _num(previous) * 100:.2f}"


def with_percentage_changes(rows: Sequence[dict], fields: dict[str, str]) -> list[dict]:
    """Copy rows, adding <name>_change_pct for every row after the first."""
    out = [dict(row) for row in rows]
    for i in range(1, len(out)):
        for name, column in fields.items():
            out[i][f"{name}_change_pct"] = percentage_change(rows[i - 1].get(column), rows[i].get(column))
    return out


def rate(numerator: Number | None, denominator: Number | None) -> str:
    """numerator / denominator * 100 as a 2-decimal string."""
    if not denominator:
        return "0.00"
    return f"{_num(numerator) / _num(denominator) * 100:.2f}"


def case_fatality_rate(deaths, total_cases) -> str:
    return rate(deaths, total_cases)


def recovery_rate(recovered, total_cases) -> str:
    return rate(recovered, total_cases)


def active_case_rate(active_cases, total_cases) -> str:
    return rate(active_cases, total_cases)


def occupancy_rate(occupied, capacity) -> str:
    return rate(occupied, capacity)


def vaccination_coverage(people, population) -> str:
    return rate(people, population)


def positivity_rate(positive_tests, total_tests) -> str:
    return rate(positive_tests, total_tests)


def per_capita(count: Number | None, population: Number | None, scale: int = 100_000) -> float:
    """count per `scale` inhabitants, rounded to 2 decimals; 0 without population."""
    if not population:
        return 0.0
    return round(_num(count) / _num(population) * scale, 2)


def trend_direction(change_pct: Number | str | None, threshold: float = TREND_THRESHOLD_PCT) -> str:
    """Classify a percentage change as increasing, decreasing or stable."""
    change = _num(change_pct)
    if change > threshold:
        return "increasing"
    if change < -threshold:
        return "decreasing"
    return "stable"


def summarize(values: Iterable[Number | None]) -> dict:
    """Total, average, max and min of a series (zeros when empty)."""
    clean = [_num(v) for v in values]
    if not clean:
        return {"total": 0, "average": 0.0, "max": 0, "min": 0}
    return {
        "total": sum(clean),
        "average": round(sum(clean) / len(clean), 2),
        "max": max(clean),
        "min": min(clean),
    }


def median(values: Sequence[Number]) -> float:
    ordered = sorted(_num(v) for v in values)
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def variance(values: Sequence[Number]) -> float:
    """Population variance."""
    clean = [_num(v) for v in values]
    if not clean:
        return 0.0
    mean = sum(clean) / len(clean)
    return sum((v - mean) ** 2 for v in clean) / len(clean)
