"""
Monitoring scheduler: APScheduler background jobs around MonitoringService.run_batch.

Jobs (all UTC):
  daily_monitoring      cron, once a day at DAILY_RUN_HOUR:00
  frequent_monitoring   every FREQUENT_INTERVAL_HOURS hours, evenly spaced
  dev_probe_monitoring  every PROBE_INTERVAL_MINUTES; never runs a pass in production

All three are registered on start(); the ones not armed for the current mode
are added paused. A tick that finds a pass in flight is skipped, not queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from pytz import utc

from walletwatch.config.settings import Settings
from walletwatch.core.exceptions import BatchAlreadyRunning
from walletwatch.logging import get_logger
from walletwatch.monitor.service import BatchSummary, MonitoringService

logger = get_logger(__name__)

JOB_DAILY = "daily_monitoring"
JOB_FREQUENT = "frequent_monitoring"
JOB_PROBE = "dev_probe_monitoring"


@dataclass(frozen=True)
class JobStatus:
    name: str
    description: str
    armed: bool
    """Job is registered and has a next fire time."""
    scheduled: bool
    """Job is registered with the scheduler (armed or paused)."""
    next_run_time: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "armed": self.armed,
            "scheduled": self.scheduled,
            "next_run_time": self.next_run_time,
        }


@dataclass(frozen=True)
class _JobDefinition:
    job_id: str
    description: str
    trigger: str
    trigger_args: dict[str, Any]
    func: Callable[[], None]
    production: bool
    """Armed in production mode (True) or in every other mode (False)."""


class MonitoringScheduler:
    """Owns the background timer thread and the three monitoring jobs."""

    def __init__(
        self,
        service: MonitoringService,
        settings: Settings,
        *,
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._service = service
        self._settings = settings
        self._scheduler = scheduler or BackgroundScheduler(timezone=utc)
        self._jobs = [
            _JobDefinition(
                job_id=JOB_DAILY,
                description=f"Daily monitoring pass at {settings.daily_run_hour:02d}:00 UTC",
                trigger="cron",
                trigger_args={"hour": settings.daily_run_hour, "minute": 0},
                func=self._daily_tick,
                production=True,
            ),
            _JobDefinition(
                job_id=JOB_FREQUENT,
                description=f"Monitoring pass every {settings.frequent_interval_hours} hours",
                trigger="interval",
                trigger_args={"hours": settings.frequent_interval_hours},
                func=self._frequent_tick,
                production=True,
            ),
            _JobDefinition(
                job_id=JOB_PROBE,
                description=f"Development probe every {settings.probe_interval_minutes} minutes",
                trigger="interval",
                trigger_args={"minutes": settings.probe_interval_minutes},
                func=self._probe_tick,
                production=False,
            ),
        ]

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def start(self) -> None:
        """Start the timer thread and register all jobs, arming those for the current mode."""
        if self.running:
            logger.warning("scheduler_already_running")
            return
        self._scheduler.start()
        production = self._settings.is_production
        for job_def in self._jobs:
            armed = job_def.production == production
            kwargs: dict[str, Any] = {}
            if not armed:
                kwargs["next_run_time"] = None
            self._scheduler.add_job(
                job_def.func,
                job_def.trigger,
                id=job_def.job_id,
                name=job_def.description,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
                timezone=utc,
                **job_def.trigger_args,
                **kwargs,
            )
        logger.info(
            "scheduler_started",
            app_env=self._settings.app_env,
            armed=[d.job_id for d in self._jobs if d.production == production],
        )

    def stop(self) -> None:
        """Disarm every job and shut the timer thread down. An in-flight pass completes."""
        if not self.running:
            return
        for job_def in self._jobs:
            if self._scheduler.get_job(job_def.job_id) is not None:
                self._scheduler.pause_job(job_def.job_id)
        self._scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")

    def status(self) -> dict[str, Any]:
        jobs = []
        for job_def in self._jobs:
            job = self._scheduler.get_job(job_def.job_id) if self.running else None
            next_run = getattr(job, "next_run_time", None) if job is not None else None
            jobs.append(
                JobStatus(
                    name=job_def.job_id,
                    description=job_def.description,
                    armed=next_run is not None,
                    scheduled=job is not None,
                    next_run_time=next_run.isoformat() if next_run is not None else None,
                )
            )
        return {
            "running": self.running,
            "app_env": self._settings.app_env,
            "batch_running": self._service.is_running,
            "jobs": jobs,
        }

    def trigger_now(self) -> BatchSummary:
        """Run one pass on the caller's thread, waiting for any pass already in flight."""
        logger.info("monitoring_manual_trigger")
        return self._service.run_batch(wait=True)

    # --- ticks ---

    def _daily_tick(self) -> None:
        self._run_tick(JOB_DAILY)

    def _frequent_tick(self) -> None:
        self._run_tick(JOB_FREQUENT)

    def _probe_tick(self) -> None:
        if self._settings.is_production:
            logger.debug("probe_tick_ignored_in_production")
            return
        self._run_tick(JOB_PROBE)

    def _run_tick(self, job_id: str) -> BatchSummary | None:
        logger.info("monitoring_job_start", job=job_id)
        try:
            summary = self._service.run_batch(wait=False)
        except BatchAlreadyRunning:
            logger.warning("monitoring_job_skipped", job=job_id, reason="batch_in_progress")
            return None
        except Exception as e:
            logger.exception("monitoring_job_error", job=job_id, error=str(e))
            return None
        logger.info("monitoring_job_end", job=job_id, **summary.to_dict())
        return summary
