from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from counsel_ai.db.engine import get_engine

_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the cached session factory shared by the cache, store and usage log."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory
