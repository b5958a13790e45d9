"""
HealthService: database, data freshness and process diagnostics.
"""
from __future__ import annotations

import os
import platform
import resource
import sys
import time
from datetime import datetime, timezone

import structlog

from ..config.constants import FRESH_HOURS, FRESHNESS_TABLES, MONITORED_TABLES, STALE_HOURS
from ..dependencies import check_connection, execute_query

logger = structlog.get_logger("covid.services.health")

FRESHNESS_LABELS = {
    "covid_cases": "COVID Cases",
    "vaccinations": "Vaccinations",
    "hospitals": "Hospital Data",
    "testing_data": "Testing Data",
}

FRESHNESS_LEGEND = {
    "fresh": f"Updated within {FRESH_HOURS} hours",
    "stale": f"Updated within {STALE_HOURS} hours",
    "very_stale": f"Not updated in over {STALE_HOURS} hours",
    "no_data": "No update timestamp available",
}

# Tables without a reporting date column
UNDATED_TABLES = {"hospitals", "regions", "municipalities", "testing_centers", "data_sources"}


def freshness_status(hours_since_update: float | None) -> str:
    """Bucket the age of a table's last write."""
    if hours_since_update is None:
        return "no_data"
    if hours_since_update < FRESH_HOURS:
        return "fresh"
    if hours_since_update < STALE_HOURS:
        return "stale"
    return "very_stale"


def overall_freshness(statuses: list[str]) -> str:
    if statuses and all(s == "fresh" for s in statuses):
        return "fresh"
    if any(s == "very_stale" for s in statuses):
        return "very_stale"
    if statuses and all(s == "no_data" for s in statuses):
        return "no_data"
    return "stale"


def memory_usage_mb() -> float:
    """Peak resident set size of this process in MB."""
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(usage / divisor, 1)


class HealthService:
    """Diagnostics for the health endpoints. Failures degrade, never raise."""

    def __init__(self):
        self.started_at = time.time()

    def uptime_seconds(self) -> int:
        return round(time.time() - self.started_at)

    def database_connected(self) -> bool:
        return check_connection()

    def table_counts(self) -> dict[str, int | None]:
        counts = {}
        for table in MONITORED_TABLES:
            result = execute_query(f"SELECT COUNT(*) AS total FROM {table}")
            first = result.first() if result.success else None
            counts[table] = first["total"] if first else None
        return counts

    def table_details(self) -> list[dict]:
        details = []
        for table in MONITORED_TABLES:
            column = "created_at" if table == "data_sources" else "updated_at"
            result = execute_query(f"SELECT COUNT(*) AS row_count, MAX({column}) AS last_update FROM {table}")
            row = result.first() if result.success else None
            details.append({
                "table": table,
                "row_count": row["row_count"] if row else None,
                "last_update": row["last_update"] if row else None,
                "status": "ok" if result.success else "error",
            })
        return details

    def sqlite_version(self) -> str | None:
        result = execute_query("SELECT sqlite_version() AS version")
        first = result.first() if result.success else None
        return first["version"] if first else None

    def data_sources(self) -> list[dict]:
        result = execute_query(
            """
            SELECT source_name, source_url, last_updated, update_frequency, is_active,
                   error_count, last_error,
                   CAST((julianday('now') - julianday(last_updated)) * 1440 AS INTEGER)
                       AS minutes_since_update
            FROM data_sources
            ORDER BY source_name
            """
        )
        return result.data if result.success else []

    def data_freshness(self) -> dict:
        results = []
        for table in FRESHNESS_TABLES:
            latest_date = "NULL" if table in UNDATED_TABLES else "MAX(date)"
            result = execute_query(
                f"""
                SELECT {latest_date} AS latest_date,
                       MAX(updated_at) AS last_updated,
                       (julianday('now') - julianday(MAX(updated_at))) * 24 AS hours_since_update,
                       COUNT(*) AS total_records
                FROM {table}
                """
            )
            row = result.first() if result.success else None
            if row is None:
                continue
            hours = row["hours_since_update"]
            results.append({
                "name": FRESHNESS_LABELS.get(table, table),
                "table": table,
                "latest_date": row["latest_date"],
                "last_updated": row["last_updated"],
                "hours_since_update": int(hours) if hours is not None else None,
                "total_records": row["total_records"],
                "status": freshness_status(hours),
            })
        return {
            "overall_status": overall_freshness([r["status"] for r in results]),
            "data": results,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "legend": FRESHNESS_LEGEND,
        }

    def recent_activity(self) -> dict:
        result = execute_query(
            """
            SELECT COUNT(*) AS case_records_last_30_days,
                   COALESCE(SUM(new_cases), 0) AS new_cases_last_30_days
            FROM covid_cases
            WHERE date >= date('now', '-30 days')
            """
        )
        return result.first() if result.success else {}

    def process_info(self) -> dict:
        times = os.times()
        return {
            "pid": os.getpid(),
            "python_version": platform.python_version(),
            "platform": platform.platform(),
            "memory_mb": memory_usage_mb(),
            "cpu_user_seconds": round(times.user, 2),
            "cpu_system_seconds": round(times.system, 2),
        }


health_service = HealthService()
