"""FastAPI dependency injection for the similarity components."""

from functools import lru_cache

from counsel_ai.ai.config import load_ai_config
from counsel_ai.bootstrap import SimilarityStack, build_gateway, build_similarity_stack
from counsel_ai.config.settings import get_settings
from counsel_ai.db.session import get_session_factory
from counsel_ai.scheduling.jobs import register_similarity_jobs
from counsel_ai.scheduling.scheduler import AsyncIntervalScheduler, PeriodicTrigger
from counsel_ai.similarity.cache import SimilarityCache
from counsel_ai.similarity.sweep import SweepSummary


@lru_cache
def _similarity_stack() -> SimilarityStack:
    settings = get_settings()
    session_factory = get_session_factory()
    ai_config = load_ai_config(settings.ai_config_path)
    gateway = build_gateway(settings, ai_config, session_factory)
    return build_similarity_stack(gateway, session_factory, ai_config)


async def _run_sweep() -> SweepSummary:
    # The model stack (and its API key) is only needed once a sweep runs
    return await _similarity_stack().sweep.run_sweep()


@lru_cache
def get_trigger() -> PeriodicTrigger:
    """On-demand trigger for the similarity jobs (not started; runs only when asked).

    Cleanup needs only the database, so it works without a model API key.
    """
    settings = get_settings()
    cache = SimilarityCache(get_session_factory())
    scheduler = AsyncIntervalScheduler()
    register_similarity_jobs(
        scheduler, _run_sweep, cache.purge_expired, load_ai_config(settings.ai_config_path).schedule
    )
    return scheduler
