"""Periodic trigger abstraction and an asyncio implementation.

Jobs are registered with an interval and run on the event loop. A job
failure is logged and the job runs again at its next interval; on-demand
runs via ``trigger`` propagate failures to the caller instead.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

JobCallback = Callable[[], Awaitable[Any]]


class PeriodicTrigger(Protocol):
    def register(self, name: str, callback: JobCallback, interval_seconds: float) -> None: ...

    async def trigger(self, name: str) -> Any: ...

    def start(self) -> None: ...

    async def stop(self) -> None: ...


@dataclass
class ScheduledJob:
    name: str
    callback: JobCallback
    interval_seconds: float


class UnknownJobError(KeyError):
    pass


class AsyncIntervalScheduler:
    """Runs each registered job every ``interval_seconds``, first run after one interval."""

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> None:
        self._sleep = sleep
        self._jobs: dict[str, ScheduledJob] = {}
        self._tasks: list[asyncio.Task] = []

    @property
    def jobs(self) -> dict[str, ScheduledJob]:
        return dict(self._jobs)

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def register(self, name: str, callback: JobCallback, interval_seconds: float) -> None:
        if name in self._jobs:
            raise ValueError(f"Job {name!r} is already registered")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._jobs[name] = ScheduledJob(name, callback, interval_seconds)

    async def trigger(self, name: str) -> Any:
        """Run a registered job now and return its result."""
        job = self._jobs.get(name)
        if job is None:
            raise UnknownJobError(name)
        logger.info("scheduled_job_triggered", job=name)
        return await job.callback()

    async def run_job(self, job: ScheduledJob) -> None:
        log = logger.bind(job=job.name)
        log.info("scheduled_job_start")
        try:
            await job.callback()
        except Exception:
            log.error("scheduled_job_failed", exc_info=True)
            return
        log.info("scheduled_job_complete")

    async def _loop(self, job: ScheduledJob) -> None:
        while True:
            await self._sleep(job.interval_seconds)
            await self.run_job(job)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._loop(job), name=f"scheduler:{job.name}")
            for job in self._jobs.values()
        ]
        logger.info("scheduler_started", jobs=sorted(self._jobs))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("scheduler_stopped")
