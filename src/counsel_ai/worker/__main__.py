"""Scheduler worker entry point: python -m counsel_ai.worker"""

import asyncio
import signal

import structlog

from counsel_ai.ai.config import load_ai_config
from counsel_ai.bootstrap import build_gateway, build_similarity_stack
from counsel_ai.config.settings import get_settings
from counsel_ai.db.engine import dispose_engine
from counsel_ai.db.session import get_session_factory
from counsel_ai.logging_config import configure_logging
from counsel_ai.scheduling.jobs import register_similarity_jobs
from counsel_ai.scheduling.scheduler import AsyncIntervalScheduler


async def main() -> None:
    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    log = structlog.get_logger()

    session_factory = get_session_factory()
    ai_config = load_ai_config(settings.ai_config_path)

    gateway = build_gateway(settings, ai_config, session_factory)
    stack = build_similarity_stack(gateway, session_factory, ai_config)

    scheduler = AsyncIntervalScheduler()
    register_similarity_jobs(
        scheduler, stack.sweep.run_sweep, stack.cache.purge_expired, ai_config.schedule
    )

    log.info(
        "worker_starting",
        database=settings.database_url.split("@")[-1],
        sweep_interval_hours=ai_config.schedule.sweep_interval_hours,
        cleanup_interval_hours=ai_config.schedule.cleanup_interval_hours,
    )

    # Graceful shutdown via SIGTERM/SIGINT
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    scheduler.start()
    await stop_event.wait()
    await scheduler.stop()
    await dispose_engine()
    log.info("worker_shutdown")


if __name__ == "__main__":
    asyncio.run(main())
