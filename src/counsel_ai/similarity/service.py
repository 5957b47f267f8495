"""Real-time ticket similarity lookups backed by the similarity cache."""
from __future__ import annotations

import structlog

from counsel_ai.ai.config import SimilarityConfig
from counsel_ai.similarity.cache import SimilarityCache
from counsel_ai.similarity.comparator import SimilarityComparator
from counsel_ai.similarity.schemas import MatchType, SimilarityResult
from counsel_ai.tickets.store import TicketFilter, TicketStore

logger = structlog.get_logger()


class TicketSimilarityService:
    def __init__(
        self,
        store: TicketStore,
        comparator: SimilarityComparator,
        cache: SimilarityCache,
        config: SimilarityConfig | None = None,
    ) -> None:
        self.store = store
        self.comparator = comparator
        self.cache = cache
        self.config = config or SimilarityConfig()

    async def find_similar_active_tickets(self, ticket_id: str) -> list[SimilarityResult]:
        """Find open tickets similar to ``ticket_id``.

        Serves unexpired cached results without touching the ticket
        store. On a miss, compares against up to ``active_candidate_limit``
        other unresolved tickets, keeps scores at or above
        ``active_threshold`` and caches them for ``active_ttl_hours``.
        Returns ``[]`` on any failure.
        """
        log = logger.bind(ticket_id=ticket_id)

        cached = await self.cache.lookup_cached(ticket_id, MatchType.ACTIVE)
        if cached:
            return cached

        try:
            ticket = await self.store.find_by_id(ticket_id)
            if ticket is None:
                log.warning("similar_active_ticket_not_found")
                return []

            candidates = await self.store.find_many(
                TicketFilter.UNRESOLVED,
                limit=self.config.active_candidate_limit,
                exclude_id=ticket_id,
            )
        except Exception as e:
            log.error("similar_active_lookup_failed", error=str(e))
            return []

        if not candidates:
            return []

        results = await self.comparator.compare(ticket, candidates)
        filtered = [r for r in results if r.score >= self.config.active_threshold]

        await self.cache.store(
            ticket_id, filtered, MatchType.ACTIVE, self.config.active_ttl_hours
        )
        log.info("similar_active_tickets_found", count=len(filtered))
        return filtered

    async def get_cached_historical_matches(self, ticket_id: str) -> list[SimilarityResult]:
        """Resolved tickets matched to ``ticket_id`` by the last sweep."""
        return await self.cache.lookup_cached(ticket_id, MatchType.HISTORICAL)
