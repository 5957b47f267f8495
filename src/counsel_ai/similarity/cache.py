"""TTL cache of similarity results in the ticket_similarity table.

Each (source ticket, match type) key holds a snapshot: ``store`` replaces
all rows for the key in one transaction. Reads fail open to a miss;
write failures are reported through the return value and an error event.
"""
from __future__ import annotations

import datetime as dt
from collections.abc import Callable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from counsel_ai.models.ticket_similarity import TicketSimilarity
from counsel_ai.similarity.schemas import MatchType, SimilarityResult

logger = structlog.get_logger()


def utcnow() -> dt.datetime:
    """Naive UTC now, matching the DateTime columns."""
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)


class SimilarityCache:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock

    async def lookup_cached(
        self,
        source_id: str,
        match_type: MatchType | str,
    ) -> list[SimilarityResult]:
        """Return unexpired cached results, highest score first.

        Returns an empty list on a miss or on any storage error.
        """
        match_type = MatchType(match_type)
        log = logger.bind(source_id=source_id, match_type=match_type.value)

        try:
            async with self.session_factory() as session:
                stmt = (
                    select(TicketSimilarity)
                    .where(
                        TicketSimilarity.source_ticket_id == source_id,
                        TicketSimilarity.match_type == match_type.value,
                        TicketSimilarity.expires_at > self.clock(),
                    )
                    .order_by(TicketSimilarity.similarity_score.desc(), TicketSimilarity.id)
                )
                rows = (await session.execute(stmt)).scalars().all()
        except Exception as e:
            log.error("similarity_cache_lookup_failed", error=str(e))
            return []

        if rows:
            log.debug("similarity_cache_hit", count=len(rows))
        else:
            log.debug("similarity_cache_miss")

        return [
            SimilarityResult(similar_ticket_id=r.similar_ticket_id, score=r.similarity_score)
            for r in rows
        ]

    async def store(
        self,
        source_id: str,
        results: list[SimilarityResult],
        match_type: MatchType | str,
        ttl_hours: float,
    ) -> bool:
        """Replace the cached snapshot for (source_id, match_type).

        Deletes all existing rows for the key and inserts ``results`` in
        the same transaction; an empty ``results`` just clears the key.
        Duplicate candidate ids keep their first occurrence.

        Returns:
            ``True`` if the snapshot was written, ``False`` on storage error.
        """
        match_type = MatchType(match_type)
        expires_at = self.clock() + dt.timedelta(hours=ttl_hours)
        log = logger.bind(source_id=source_id, match_type=match_type.value)

        seen: set[str] = set()
        rows = []
        for r in results:
            if r.similar_ticket_id in seen:
                continue
            seen.add(r.similar_ticket_id)
            rows.append(
                TicketSimilarity(
                    source_ticket_id=source_id,
                    similar_ticket_id=r.similar_ticket_id,
                    similarity_score=r.score,
                    match_type=match_type.value,
                    expires_at=expires_at,
                )
            )

        try:
            async with self.session_factory() as session, session.begin():
                await session.execute(
                    delete(TicketSimilarity).where(
                        TicketSimilarity.source_ticket_id == source_id,
                        TicketSimilarity.match_type == match_type.value,
                    )
                )
                session.add_all(rows)
        except Exception as e:
            log.error("similarity_cache_store_failed", error=str(e))
            return False

        log.info(
            "similarity_cache_stored",
            count=len(rows),
            expires_at=expires_at.isoformat(),
        )
        return True

    async def purge_expired(self) -> int:
        """Hard-delete rows whose ``expires_at`` has passed. Returns the row count."""
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                delete(TicketSimilarity).where(TicketSimilarity.expires_at <= self.clock())
            )
        deleted = result.rowcount or 0
        logger.info("similarity_cache_purged", deleted=deleted)
        return deleted
