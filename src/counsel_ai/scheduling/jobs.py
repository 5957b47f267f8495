"""Registration of the periodic similarity jobs."""
from __future__ import annotations

from counsel_ai.ai.config import ScheduleConfig
from counsel_ai.scheduling.scheduler import JobCallback, PeriodicTrigger

SWEEP_JOB = "similarity_sweep"
CLEANUP_JOB = "similarity_cleanup"

_HOUR = 3600


def register_similarity_jobs(
    trigger: PeriodicTrigger,
    run_sweep: JobCallback,
    purge_expired: JobCallback,
    schedule: ScheduleConfig | None = None,
) -> None:
    """Register the weekly historical sweep and the daily expiry cleanup.

    Usually ``SimilaritySweep.run_sweep`` and ``SimilarityCache.purge_expired``.
    """
    schedule = schedule or ScheduleConfig()
    trigger.register(SWEEP_JOB, run_sweep, schedule.sweep_interval_hours * _HOUR)
    trigger.register(CLEANUP_JOB, purge_expired, schedule.cleanup_interval_hours * _HOUR)
