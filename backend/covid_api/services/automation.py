"""
AutomationService: cron-scheduled data refresh and derived statistics.

One instance is built at application startup and kept on app.state; it
owns an APScheduler BackgroundScheduler and the handles of the jobs it
registered. Jobs are isolated from each other: a failure is logged and
recorded against the job's data source, and the next tick is the retry.
"""
from __future__ import annotations

import random
import re
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import partial
from typing import Any, Callable
from zoneinfo import ZoneInfo

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..cache import STATISTICS_CACHE, app_cache
from ..config import settings
from ..config.constants import (
    DAILY_STATS_CRON,
    JOB_DAILY_STATS,
    JOB_DATA_UPDATE,
    JOB_WEEKLY_REPORT,
    SOURCE_CASE_SIMULATION,
    SOURCE_DAILY_STATISTICS,
    SOURCE_HOSPITAL_SIMULATION,
    SOURCE_VACCINATION_SIMULATION,
    SOURCE_WEEKLY_REPORT,
    WEEKLY_REPORT_CRON,
)
from . import automation_jobs as jobs

logger = structlog.get_logger("covid.automation")

CRONTAB_DAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def _day_name(match: re.Match) -> str:
    day = int(match.group())
    if day >= len(CRONTAB_DAYS):
        raise ValueError(f"Invalid day of week {day}")
    return CRONTAB_DAYS[day]


def zone_today(tz: str | None = None) -> date:
    """Today in the scheduler's timezone; host local date when unset."""
    if tz is None:
        return date.today()
    return datetime.now(ZoneInfo(tz)).date()


def crontab_trigger(expr: str, tz: str | None = None) -> CronTrigger:
    """CronTrigger from a five-field crontab line.

    APScheduler 3 numbers weekdays from Monday while crontab numbers them
    from Sunday, so numeric weekdays are rewritten as names first.
    """
    fields = expr.split()
    if len(fields) == 5 and "/" not in fields[4]:
        fields[4] = re.sub(r"\d+", _day_name, fields[4])
    return CronTrigger.from_crontab(" ".join(fields), timezone=tz)


@dataclass
class JobSpec:
    """A named job: cron expression, body, and the data source it reports to."""
    name: str
    cron: str
    func: Callable[[], Any]
    source: str


class AutomationService:
    """Owns the scheduler and the registry of running jobs."""

    def __init__(
        self,
        data_update_cron: str = settings.AUTO_UPDATE_CRON,
        timezone_name: str | None = settings.AUTOMATION_TIMEZONE,
        rng: random.Random | None = None,
        scheduler_factory: Callable[..., Any] = BackgroundScheduler,
        clock: Callable[[], date] | None = None,
    ):
        self._timezone = timezone_name
        self._rng = rng or random.Random()
        self._scheduler_factory = scheduler_factory
        # Jobs date their rows by the day the cron trigger fired in
        self._clock = clock or partial(zone_today, timezone_name)
        self._lock = threading.Lock()
        self._scheduler = None
        self._registry: dict[str, tuple[str, Any]] = {}
        self._specs = {
            JOB_DATA_UPDATE: JobSpec(JOB_DATA_UPDATE, data_update_cron, self._data_update, SOURCE_CASE_SIMULATION),
            JOB_DAILY_STATS: JobSpec(JOB_DAILY_STATS, DAILY_STATS_CRON, self._daily_stats, SOURCE_DAILY_STATISTICS),
            JOB_WEEKLY_REPORT: JobSpec(
                JOB_WEEKLY_REPORT, WEEKLY_REPORT_CRON, self._weekly_report, SOURCE_WEEKLY_REPORT
            ),
        }
        self.last_runs: dict[str, dict] = {}

    # --- Lifecycle ---

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> bool:
        """Register all jobs and start the scheduler. No-op if already running."""
        with self._lock:
            if self._scheduler is not None:
                logger.warning("automation_already_running")
                return False

            tz_kwargs = {"timezone": self._timezone} if self._timezone else {}
            # Parse every cron expression before touching any state
            triggers = {
                name: crontab_trigger(spec.cron, self._timezone)
                for name, spec in self._specs.items()
            }

            scheduler = self._scheduler_factory(**tz_kwargs)
            registry = {}
            for name, spec in self._specs.items():
                job = scheduler.add_job(
                    self.run_job,
                    triggers[name],
                    args=[name],
                    id=name,
                    name=name,
                    max_instances=1,
                    coalesce=True,
                    replace_existing=True,
                )
                registry[name] = (spec.cron, job)
            scheduler.start()

            self._scheduler = scheduler
            self._registry = registry
            logger.info("automation_started", jobs=sorted(registry))
            return True

    def stop(self) -> bool:
        """Remove all jobs and shut the scheduler down."""
        with self._lock:
            if self._scheduler is None:
                return False
            for name, (_, job) in self._registry.items():
                job.remove()
                logger.info("automation_job_removed", job=name)
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            self._registry = {}
            logger.info("automation_stopped")
            return True

    def status(self) -> dict:
        with self._lock:
            active = sorted(self._registry)
            return {
                "running": self._scheduler is not None,
                "active_jobs": active,
                "job_count": len(active),
                "schedules": {name: spec.cron for name, spec in self._specs.items()},
            }

    # --- Job execution ---

    def run_job(self, name: str) -> Any:
        """Run one job now, isolating and recording any failure."""
        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown automation job '{name}'")

        logger.info("automation_job_started", job=name)
        started = time.perf_counter()
        try:
            result = spec.func()
        except Exception as exc:
            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            logger.error("automation_job_failed", job=name, error=str(exc), duration_ms=duration_ms)
            jobs.record_source_error(spec.source, str(exc))
            self._remember(name, success=False, error=str(exc))
            return None

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.info("automation_job_completed", job=name, duration_ms=duration_ms)
        self._remember(name, success=True)
        return result

    def _remember(self, name: str, success: bool, error: str | None = None) -> None:
        self.last_runs[name] = {
            "success": success,
            "error": error,
            "finished_at": datetime.now(timezone.utc).isoformat(),
        }

    def _run_step(self, step: str, source: str, func: Callable[[], Any]) -> dict:
        """One refresh step; its failure does not stop the others."""
        try:
            result = func()
        except Exception as exc:
            logger.error("automation_step_failed", step=step, error=str(exc))
            jobs.record_source_error(source, str(exc))
            return {"success": False, "error": str(exc)}
        jobs.record_source_success(source)
        return {"success": True, "result": result}

    def _data_update(self) -> dict:
        today = self._clock()
        steps = {
            "cases": self._run_step(
                "cases", SOURCE_CASE_SIMULATION, lambda: jobs.refresh_cases(today, self._rng)
            ),
            "hospitals": self._run_step(
                "hospitals", SOURCE_HOSPITAL_SIMULATION, lambda: jobs.refresh_hospital_occupancy(self._rng)
            ),
            "vaccinations": self._run_step(
                "vaccinations", SOURCE_VACCINATION_SIMULATION, lambda: jobs.accumulate_vaccinations(today, self._rng)
            ),
        }
        app_cache.invalidate(STATISTICS_CACHE)
        return steps

    def _daily_stats(self) -> dict:
        today = self._clock()
        regions = jobs.calculate_daily_statistics(today)
        trends = jobs.update_trends(today)
        app_cache.invalidate(STATISTICS_CACHE)
        jobs.record_source_success(SOURCE_DAILY_STATISTICS)
        return {"regions_updated": regions, "trend_days": trends["days"]}

    def _weekly_report(self) -> dict:
        report = jobs.generate_weekly_report(self._clock())
        jobs.record_source_success(SOURCE_WEEKLY_REPORT)
        return report
