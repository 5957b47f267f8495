"""Assemble the AI and similarity components from settings and config."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import async_sessionmaker

from counsel_ai.ai.config import AIConfig
from counsel_ai.ai.gateway import ModelGateway
from counsel_ai.ai.provider import GeminiProvider, create_client
from counsel_ai.ai.usage import UsageRecorder
from counsel_ai.config.settings import Settings
from counsel_ai.resilience.rate_limiter import RateLimiter
from counsel_ai.resilience.retry import RetryOptions
from counsel_ai.similarity.cache import SimilarityCache
from counsel_ai.similarity.comparator import SimilarityComparator
from counsel_ai.similarity.service import TicketSimilarityService
from counsel_ai.similarity.sweep import SimilaritySweep
from counsel_ai.tickets.store import SqlTicketStore


class MissingAPIKeyError(RuntimeError):
    pass


@dataclass
class SimilarityStack:
    gateway: ModelGateway
    cache: SimilarityCache
    comparator: SimilarityComparator
    rate_limiter: RateLimiter
    sweep: SimilaritySweep
    service: TicketSimilarityService


def build_gateway(
    settings: Settings,
    ai_config: AIConfig,
    session_factory: async_sessionmaker,
) -> ModelGateway:
    if not settings.gemini_api_key:
        raise MissingAPIKeyError("COUNSEL_AI_GEMINI_API_KEY is not configured")
    client = create_client(settings.gemini_api_key, ai_config.gateway.request_timeout_seconds)
    return ModelGateway(
        GeminiProvider(client),
        ai_config.gateway,
        usage_callback=UsageRecorder(session_factory, ai_config.gateway),
    )


def build_similarity_stack(
    gateway: ModelGateway,
    session_factory: async_sessionmaker,
    ai_config: AIConfig,
) -> SimilarityStack:
    """Wire the similarity components around one comparator and cache.

    Only the sweep is rate limited; on-demand lookups call the model directly.
    """
    store = SqlTicketStore(session_factory)
    cache = SimilarityCache(session_factory)
    comparator = SimilarityComparator(
        gateway, ai_config.similarity, RetryOptions.from_config(ai_config.retry)
    )
    rate_limiter = RateLimiter(ai_config.similarity.calls_per_minute)
    return SimilarityStack(
        gateway=gateway,
        cache=cache,
        comparator=comparator,
        rate_limiter=rate_limiter,
        sweep=SimilaritySweep(store, comparator, cache, rate_limiter, ai_config.similarity),
        service=TicketSimilarityService(store, comparator, cache, ai_config.similarity),
    )
