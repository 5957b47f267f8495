"""Tests for AI book ranking and its fallback."""
import json

import pytest

from counsel_ai.ai.errors import ProviderRequestError
from counsel_ai.recommendations.ranking import (
    FALLBACK_REASONING,
    BookCandidate,
    ReadBook,
    ReadingProfile,
    fallback_ranking,
    format_ranking_prompt,
    rank_books,
)
from counsel_ai.resilience.retry import RetryOptions

NO_DELAY = RetryOptions(initial_delay_ms=0, max_delay_ms=0)


@pytest.fixture
def profile() -> ReadingProfile:
    return ReadingProfile(
        reading_history=[ReadBook(title="Mere Christianity", author="C.S. Lewis",
                                  genre_tag="apologetics", rating=5)],
        preferred_genres=["devotional"],
        average_alignment_score=82.5,
    )


@pytest.fixture
def books() -> list[BookCandidate]:
    return [
        BookCandidate(id="b-0", title="Knowing God", author="J.I. Packer",
                      genre_tag="theology", biblical_alignment_score=90),
        BookCandidate(id="b-1", title="Jesus Calling", author="Sarah Young",
                      genre_tag="devotional", biblical_alignment_score=80),
        BookCandidate(id="b-2", title="Unknown", author="Anon",
                      genre_tag="fiction", biblical_alignment_score=None),
    ]


class TestFallbackRanking:
    def test_genre_boost_and_order(self, profile, books):
        ranked = fallback_ranking(profile, books)
        assert [(r.book_id, r.score) for r in ranked] == [("b-1", 95), ("b-0", 90), ("b-2", 0)]
        assert all(r.reasoning == FALLBACK_REASONING for r in ranked)

    def test_score_capped_at_100(self, profile):
        book = BookCandidate(id="x", title="t", author="a", genre_tag="devotional",
                             biblical_alignment_score=95)
        assert fallback_ranking(profile, [book])[0].score == 100


class TestFormatRankingPrompt:
    def test_contents(self, profile, books):
        prompt = format_ranking_prompt(profile, books, 2)
        assert "- Mere Christianity by C.S. Lewis (apologetics, rating: 5" in prompt
        assert "[1] Jesus Calling by Sarah Young (Genre: devotional, Score: 80)" in prompt
        assert "Preferred Genres: devotional" in prompt
        assert "Recommend the top 2 books" in prompt

    def test_empty_history(self, books):
        prompt = format_ranking_prompt(ReadingProfile(), books, 5)
        assert "- none yet" in prompt
        assert "Preferred Genres: None yet" in prompt


class TestRankBooks:
    async def test_empty_candidates(self, provider, gateway, profile):
        assert await rank_books(gateway, profile, []) == []
        assert provider.calls == []

    async def test_model_ranking(self, provider, gateway, profile, books):
        provider.queue(json.dumps([
            {"index": 2, "score": 88, "reasoning": "Fresh voice"},
            {"index": 0, "score": 75, "reasoning": "Deep theology"},
        ]))

        ranked = await rank_books(gateway, profile, books, retry_options=NO_DELAY)

        assert [(r.book_id, r.score, r.reasoning) for r in ranked] == [
            ("b-2", 88, "Fresh voice"),
            ("b-0", 75, "Deep theology"),
        ]
        call = provider.calls[0]
        assert call["model_id"] == "gemini-2.5-flash-lite"
        assert call["max_tokens"] == 1000
        assert call["temperature"] == 0.3

    async def test_limit_applied(self, provider, gateway, profile, books):
        provider.queue(json.dumps([{"index": i, "score": 90 - i} for i in range(3)]))
        ranked = await rank_books(gateway, profile, books, limit=2, retry_options=NO_DELAY)
        assert [r.book_id for r in ranked] == ["b-0", "b-1"]

    async def test_invalid_json_falls_back(self, provider, gateway, profile, books):
        provider.queue("I recommend Knowing God.")
        ranked = await rank_books(gateway, profile, books, retry_options=NO_DELAY)
        assert [r.book_id for r in ranked] == ["b-1", "b-0", "b-2"]

    async def test_bad_index_falls_back(self, provider, gateway, profile, books):
        provider.queue(json.dumps([{"index": 9, "score": 90}]))
        ranked = await rank_books(gateway, profile, books, limit=1, retry_options=NO_DELAY)
        assert [r.book_id for r in ranked] == ["b-1"]

    async def test_provider_failure_falls_back(self, provider, gateway, profile, books):
        provider.queue(ProviderRequestError("invalid key", status_code=401))
        ranked = await rank_books(gateway, profile, books, retry_options=NO_DELAY)
        assert ranked[0].reasoning == FALLBACK_REASONING
        assert len(provider.calls) == 1
