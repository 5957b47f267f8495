"""Process-wide async engine for the ticket database."""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from counsel_ai.config.settings import get_settings

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Return the cached engine, creating it from settings on first use.

    Pooled connections are pinged before use; the worker can sit idle
    for a day between jobs.
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    return _engine


async def dispose_engine() -> None:
    """Close pooled connections. The engine stays usable and reconnects lazily."""
    if _engine is not None:
        await _engine.dispose()
