"""Weekly reconciliation of unresolved tickets against resolved ones.

Each unresolved ticket is compared with every resolved ticket that has a
resolution, in batches, and the high-confidence matches are cached as
historical matches. Tickets are processed one at a time behind the shared
rate limiter; a failure on one ticket is logged and counted, and the
sweep moves on.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from typing import TypeVar

import structlog

from counsel_ai.ai.config import SimilarityConfig
from counsel_ai.resilience.rate_limiter import RateLimiter
from counsel_ai.similarity.cache import SimilarityCache
from counsel_ai.similarity.comparator import SimilarityComparator
from counsel_ai.similarity.schemas import ComparableRecord, MatchType, SimilarityResult
from counsel_ai.tickets.store import TicketFilter, TicketStore

logger = structlog.get_logger()

T = TypeVar("T")


class CacheWriteError(RuntimeError):
    def __init__(self, ticket_id: str) -> None:
        super().__init__(f"Failed to cache historical matches for ticket {ticket_id}")
        self.ticket_id = ticket_id


@dataclass
class SweepSummary:
    total: int = 0
    success_count: int = 0
    error_count: int = 0
    resolved_count: int = 0
    skipped: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


def chunked(items: list[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class SimilaritySweep:
    def __init__(
        self,
        store: TicketStore,
        comparator: SimilarityComparator,
        cache: SimilarityCache,
        rate_limiter: RateLimiter,
        config: SimilarityConfig | None = None,
    ) -> None:
        self.store = store
        self.comparator = comparator
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.config = config or SimilarityConfig()

    async def run_sweep(self) -> SweepSummary:
        """Run one full sweep.

        Errors while loading the ticket sets propagate to the caller;
        errors while processing an individual ticket do not.
        """
        log = logger.bind(sweep_id=str(uuid.uuid4())[:8])
        log.info("sweep_start")

        unresolved = await self.store.find_many(TicketFilter.UNRESOLVED)
        resolved = await self.store.find_many(TicketFilter.RESOLVED_WITH_RESOLUTION)
        summary = SweepSummary(total=len(unresolved), resolved_count=len(resolved))

        log.info("sweep_loaded", unresolved=len(unresolved), resolved=len(resolved))

        if not unresolved or not resolved:
            log.info("sweep_skip", reason="no_tickets")
            summary.skipped = True
            return summary

        for ticket in unresolved:
            try:
                matches = await self._process_ticket(ticket, resolved)
            except Exception as e:
                log.error("sweep_ticket_failed", ticket_id=ticket.id, error=str(e))
                summary.error_count += 1
                continue
            log.debug("sweep_ticket_done", ticket_id=ticket.id, matches=len(matches))
            summary.success_count += 1

        log.info(
            "sweep_complete",
            total=summary.total,
            success_count=summary.success_count,
            error_count=summary.error_count,
        )
        return summary

    async def _process_ticket(
        self,
        ticket: ComparableRecord,
        resolved: list[ComparableRecord],
    ) -> list[SimilarityResult]:
        await self.rate_limiter.wait()

        all_results: list[SimilarityResult] = []
        for batch in chunked(resolved, self.config.batch_size):
            all_results.extend(await self.comparator.compare(ticket, batch))

        filtered = [r for r in all_results if r.score >= self.config.historical_threshold]

        stored = await self.cache.store(
            ticket.id, filtered, MatchType.HISTORICAL, self.config.historical_ttl_hours
        )
        if not stored:
            raise CacheWriteError(ticket.id)
        return filtered
