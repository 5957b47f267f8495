"""Batch similarity scoring of one ticket against a candidate set.

One model request scores up to ``batch_size`` candidates; anything
beyond the cap is excluded from the call (callers chunk larger sets).
Failures never propagate: ``compare`` returns ``[]`` and
``compare_outcome`` reports the error alongside the empty result.
"""
from __future__ import annotations

from typing import Any

import structlog

from counsel_ai.ai.config import SimilarityConfig
from counsel_ai.ai.gateway import ModelGateway
from counsel_ai.resilience.retry import RetryOptions, execute
from counsel_ai.similarity.prompt import format_comparison_prompt
from counsel_ai.similarity.schemas import (
    CandidateScore,
    ComparableRecord,
    ComparisonOutcome,
    SimilarityResult,
)

logger = structlog.get_logger()


class InvalidSimilarityResponseError(ValueError):
    """Model answer is not an array or references a candidate outside the batch."""


def map_scores(raw: Any, batch: list[ComparableRecord]) -> list[SimilarityResult]:
    """Validate the parsed model answer and map indices to ticket ids.

    Preserves the model's ordering.

    Raises:
        InvalidSimilarityResponseError: on a non-array answer or an
            out-of-range index.
        pydantic.ValidationError: on elements missing index/score.
    """
    if not isinstance(raw, list):
        raise InvalidSimilarityResponseError(
            f"Expected JSON array, got {type(raw).__name__}"
        )

    results = []
    for item in raw:
        scored = CandidateScore.model_validate(item)
        if scored.index >= len(batch):
            raise InvalidSimilarityResponseError(
                f"Index {scored.index} outside batch of {len(batch)}"
            )
        results.append(
            SimilarityResult(similar_ticket_id=batch[scored.index].id, score=scored.score)
        )
    return results


class SimilarityComparator:
    """Scores candidate tickets against a source ticket via the model gateway."""

    def __init__(
        self,
        gateway: ModelGateway,
        config: SimilarityConfig | None = None,
        retry_options: RetryOptions | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config or SimilarityConfig()
        self.retry_options = retry_options or RetryOptions()

    async def compare_outcome(
        self,
        source: ComparableRecord,
        candidates: list[ComparableRecord],
    ) -> ComparisonOutcome:
        if not candidates:
            return ComparisonOutcome()

        batch = candidates[: self.config.batch_size]
        log = logger.bind(source_id=source.id, candidate_count=len(batch))
        if len(candidates) > len(batch):
            log.debug("similarity_batch_truncated", excluded=len(candidates) - len(batch))

        prompt = format_comparison_prompt(source, batch, self.config.min_reported_score)

        try:
            raw = await execute(
                lambda: self.gateway.json_completion(
                    self.config.comparison_tier,
                    [{"role": "user", "content": prompt}],
                    max_tokens=self.config.comparison_max_tokens,
                    operation="ticket_similarity",
                ),
                self.retry_options,
                name="ticket_similarity",
            )
            results = map_scores(raw, batch)
        except Exception as e:
            log.error("similarity_batch_failed", error=str(e))
            return ComparisonOutcome(error=str(e))

        log.info("similarity_batch_complete", matches_found=len(results))
        return ComparisonOutcome(results=results)

    async def compare(
        self,
        source: ComparableRecord,
        candidates: list[ComparableRecord],
    ) -> list[SimilarityResult]:
        """Score ``candidates`` against ``source``; ``[]`` on no match or failure."""
        outcome = await self.compare_outcome(source, candidates)
        return outcome.results
