"""Tests for batch similarity comparison.

All tests are self-contained -- the provider is scripted.
"""
import json

import pytest

from counsel_ai.ai.errors import ProviderRequestError, ProviderServerError
from counsel_ai.ai.gateway import JSON_ONLY_INSTRUCTION
from counsel_ai.resilience.retry import RetryOptions
from counsel_ai.similarity.comparator import (
    InvalidSimilarityResponseError,
    SimilarityComparator,
    map_scores,
)
from counsel_ai.similarity.prompt import format_comparison_prompt
from counsel_ai.similarity.schemas import ComparableRecord
from fakes import make_candidates


@pytest.fixture
def comparator(gateway) -> SimilarityComparator:
    return SimilarityComparator(
        gateway, retry_options=RetryOptions(initial_delay_ms=0, max_delay_ms=0)
    )


def scores(*pairs) -> str:
    return json.dumps([{"index": i, "score": s} for i, s in pairs])


# ---- Prompt formatting ----

class TestFormatComparisonPrompt:
    def test_contains_source_and_indexed_candidates(self, source_ticket):
        prompt = format_comparison_prompt(source_ticket, make_candidates(2), 40)
        assert "Title: Cannot log in" in prompt
        assert "[0] ID: c-0" in prompt
        assert "[1] ID: c-1" in prompt
        assert "Only include scores above 40" in prompt
        assert '[{"index": 0, "score": 85}' in prompt

    def test_resolution_included_when_present(self, source_ticket):
        candidates = make_candidates(1, resolution="Reset the password")
        prompt = format_comparison_prompt(source_ticket, candidates, 40)
        assert "Resolution: Reset the password" in prompt

    def test_resolution_omitted_when_absent(self, source_ticket):
        prompt = format_comparison_prompt(source_ticket, make_candidates(1), 40)
        assert "Resolution:" not in prompt

    def test_long_description_truncated(self):
        source = ComparableRecord(id="s", title="t", description="x" * 5000)
        prompt = format_comparison_prompt(source, make_candidates(1), 40)
        assert "x" * 997 + "..." in prompt
        assert "x" * 1001 not in prompt


# ---- Score mapping ----

class TestMapScores:
    def test_maps_indices_to_ids_in_model_order(self):
        batch = make_candidates(3)
        results = map_scores([{"index": 2, "score": 70}, {"index": 0, "score": 90}], batch)
        assert [(r.similar_ticket_id, r.score) for r in results] == [("c-2", 70), ("c-0", 90)]

    def test_empty_array(self):
        assert map_scores([], make_candidates(3)) == []

    def test_out_of_range_index_rejected(self):
        with pytest.raises(InvalidSimilarityResponseError):
            map_scores([{"index": 3, "score": 70}], make_candidates(3))

    def test_non_array_rejected(self):
        with pytest.raises(InvalidSimilarityResponseError):
            map_scores({"index": 0, "score": 70}, make_candidates(3))

    def test_score_out_of_bounds_rejected(self):
        with pytest.raises(Exception):
            map_scores([{"index": 0, "score": 150}], make_candidates(3))

    def test_missing_score_rejected(self):
        with pytest.raises(Exception):
            map_scores([{"index": 0}], make_candidates(3))


# ---- SimilarityComparator ----

class TestSimilarityComparator:
    async def test_empty_candidates_no_call(self, provider, comparator, source_ticket):
        outcome = await comparator.compare_outcome(source_ticket, [])
        assert outcome.results == []
        assert not outcome.failed
        assert provider.calls == []

    async def test_returns_scores(self, provider, comparator, source_ticket):
        provider.queue(scores((0, 85), (2, 62)))
        results = await comparator.compare(source_ticket, make_candidates(3))
        assert [(r.similar_ticket_id, r.score) for r in results] == [("c-0", 85), ("c-2", 62)]

    async def test_request_parameters(self, provider, comparator, source_ticket):
        provider.queue("[]")
        await comparator.compare(source_ticket, make_candidates(3))

        call = provider.calls[0]
        assert call["model_id"] == "gemini-2.5-flash"
        assert call["max_tokens"] == 500
        assert call["temperature"] == 0
        assert call["system"] == JSON_ONLY_INSTRUCTION
        assert [m["role"] for m in call["messages"]] == ["user"]

    async def test_batch_capped_at_twenty(self, provider, comparator, source_ticket):
        provider.queue(scores((19, 90)))
        results = await comparator.compare(source_ticket, make_candidates(22))

        assert len(provider.calls) == 1
        prompt = provider.prompts[0]
        assert "[19] ID: c-19" in prompt
        assert "c-20" not in prompt
        assert "c-21" not in prompt
        assert [r.similar_ticket_id for r in results] == ["c-19"]

    async def test_index_beyond_batch_fails_whole_batch(self, provider, comparator, source_ticket):
        provider.queue(scores((0, 90), (21, 88)))
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(22))
        assert outcome.results == []
        assert outcome.failed

    async def test_non_array_answer_is_empty(self, provider, comparator, source_ticket):
        provider.queue('{"index": 0, "score": 90}')
        assert await comparator.compare(source_ticket, make_candidates(3)) == []

    async def test_out_of_bounds_score_is_empty(self, provider, comparator, source_ticket):
        provider.queue(scores((0, 150)))
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(3))
        assert outcome.results == []
        assert outcome.failed

    async def test_prose_answer_is_empty(self, provider, comparator, source_ticket):
        provider.queue("None of these tickets look related.")
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(3))
        assert outcome.results == []
        assert outcome.failed

    async def test_fenced_answer_parsed(self, provider, comparator, source_ticket):
        provider.queue(f"```json\n{scores((1, 77))}\n```")
        results = await comparator.compare(source_ticket, make_candidates(3))
        assert [r.similar_ticket_id for r in results] == ["c-1"]

    async def test_transient_error_retried(self, provider, comparator, source_ticket):
        provider.queue(ProviderServerError("overloaded", status_code=503), scores((0, 81)))
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(2))

        assert not outcome.failed
        assert [r.score for r in outcome.results] == [81]
        assert len(provider.calls) == 2

    async def test_retries_exhausted(self, provider, comparator, source_ticket):
        provider.queue(*[ProviderServerError("overloaded", status_code=503) for _ in range(3)])
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(2))

        assert outcome.failed
        assert "overloaded" in outcome.error
        assert len(provider.calls) == 3

    async def test_permanent_error_not_retried(self, provider, comparator, source_ticket):
        provider.queue(ProviderRequestError("model not found", status_code=404))
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(2))

        assert outcome.failed
        assert len(provider.calls) == 1

    async def test_prose_mentioning_network_not_retried(self, provider, comparator, source_ticket):
        provider.queue("These tickets are unrelated; they all describe a network timeout.")
        outcome = await comparator.compare_outcome(source_ticket, make_candidates(2))

        assert outcome.failed
        assert len(provider.calls) == 1
