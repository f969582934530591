# Recurring monitoring passes: daily, every N hours, dev-only probe.

from walletwatch.scheduler.engine import (
    JOB_DAILY,
    JOB_FREQUENT,
    JOB_PROBE,
    JobStatus,
    MonitoringScheduler,
)

__all__ = [
    "JOB_DAILY",
    "JOB_FREQUENT",
    "JOB_PROBE",
    "JobStatus",
    "MonitoringScheduler",
]
