"""Token usage tracking and cost estimation for model calls.

Logs each model call to the ai_usage_log table and provides cost
aggregation queries for per-period reporting.
"""
from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from counsel_ai.ai.config import GatewayConfig, ModelPricing
from counsel_ai.ai.provider import CompletionUsage
from counsel_ai.models.ai_usage_log import AIUsageLog

logger = structlog.get_logger()


def estimate_cost(
    prompt_tokens: int,
    completion_tokens: int,
    pricing: ModelPricing,
) -> float:
    """Estimate cost in USD for a single API call.

    Args:
        prompt_tokens: Number of input tokens.
        completion_tokens: Number of output tokens.
        pricing: Per-1M-token pricing for the model used.

    Returns:
        Estimated cost in USD.
    """
    input_cost = (prompt_tokens / 1_000_000) * pricing.input_per_1m
    output_cost = (completion_tokens / 1_000_000) * pricing.output_per_1m
    return input_cost + output_cost


async def log_usage(
    session_factory: async_sessionmaker,
    operation: str,
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    estimated_cost_usd: float,
) -> None:
    """Persist a single usage entry."""
    async with session_factory() as session, session.begin():
        session.add(
            AIUsageLog(
                operation=operation,
                model=model,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
                estimated_cost_usd=estimated_cost_usd,
            )
        )


async def get_period_summary(
    session_factory: async_sessionmaker,
    since: datetime,
) -> dict:
    """Get usage summary for a time period, broken down by operation.

    Args:
        session_factory: Async session factory.
        since: Start of the reporting period.

    Returns:
        Dict with total_requests, total_tokens, estimated_cost_usd and a
        per-operation breakdown.
    """
    async with session_factory() as session:
        stmt = (
            select(
                AIUsageLog.operation,
                func.count(AIUsageLog.id).label("requests"),
                func.sum(AIUsageLog.total_tokens).label("total_tokens"),
                func.sum(AIUsageLog.estimated_cost_usd).label("estimated_cost_usd"),
            )
            .where(AIUsageLog.created_at >= since)
            .group_by(AIUsageLog.operation)
        )
        rows = (await session.execute(stmt)).all()

    by_operation = {
        row.operation: {
            "requests": row.requests,
            "total_tokens": row.total_tokens or 0,
            "estimated_cost_usd": round(row.estimated_cost_usd or 0.0, 6),
        }
        for row in rows
    }
    return {
        "since": since.isoformat(),
        "total_requests": sum(v["requests"] for v in by_operation.values()),
        "total_tokens": sum(v["total_tokens"] for v in by_operation.values()),
        "estimated_cost_usd": round(
            sum(v["estimated_cost_usd"] for v in by_operation.values()), 6
        ),
        "by_operation": by_operation,
    }


class UsageRecorder:
    """Gateway usage callback that prices and persists each call."""

    def __init__(self, session_factory: async_sessionmaker, config: GatewayConfig) -> None:
        self.session_factory = session_factory
        self.config = config

    async def __call__(self, operation: str, model: str, usage: CompletionUsage) -> None:
        pricing = self.config.pricing.get(model, ModelPricing())
        cost = estimate_cost(usage.input_tokens, usage.output_tokens, pricing)
        await log_usage(
            self.session_factory,
            operation,
            model,
            prompt_tokens=usage.input_tokens,
            completion_tokens=usage.output_tokens,
            estimated_cost_usd=cost,
        )
        logger.debug(
            "usage_logged",
            operation=operation,
            model=model,
            total_tokens=usage.input_tokens + usage.output_tokens,
            estimated_cost_usd=round(cost, 6),
        )
