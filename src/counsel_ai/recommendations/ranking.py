"""AI ranking of reading recommendations with a score-based fallback."""
from __future__ import annotations

import structlog
from pydantic import BaseModel, Field

from counsel_ai.ai.config import ModelTier
from counsel_ai.ai.gateway import ModelGateway
from counsel_ai.resilience.retry import RetryOptions, execute

logger = structlog.get_logger()

GENRE_MATCH_BOOST = 15
FALLBACK_REASONING = "Recommended based on biblical alignment and genre preferences"


class ReadBook(BaseModel):
    title: str
    author: str
    genre_tag: str = "general"
    rating: float | None = None


class ReadingProfile(BaseModel):
    reading_history: list[ReadBook] = []
    preferred_genres: list[str] = []
    average_alignment_score: float = 0.0


class BookCandidate(BaseModel):
    id: str
    title: str
    author: str
    genre_tag: str = "general"
    biblical_alignment_score: int | None = None


class RankedRecommendation(BaseModel):
    book_id: str
    score: int = Field(ge=0, le=100)
    reasoning: str = ""


class _RankedItem(BaseModel):
    index: int = Field(ge=0)
    score: int = Field(ge=0, le=100)
    reasoning: str = ""


def format_ranking_prompt(
    profile: ReadingProfile,
    candidates: list[BookCandidate],
    limit: int,
) -> str:
    history = "\n".join(
        f"- {b.title} by {b.author} ({b.genre_tag}, rating: {b.rating if b.rating is not None else 'N/A'})"
        for b in profile.reading_history[:5]
    )
    books = "\n".join(
        f"[{i}] {b.title} by {b.author} (Genre: {b.genre_tag}, Score: {b.biblical_alignment_score})"
        for i, b in enumerate(candidates)
    )
    return f"""You are a Christian reading recommendation AI. Analyze this user's reading history and recommend books they would enjoy.

USER'S READING HISTORY:
{history or '- none yet'}

Preferred Genres: {', '.join(profile.preferred_genres) or 'None yet'}
Average Alignment Score: {profile.average_alignment_score}

CANDIDATE BOOKS:
{books}

Return a JSON array of recommendations, ranked by relevance (best first). Include:
- index: The book's index from the candidate list
- score: Relevance score 0-100
- reasoning: One sentence why this book matches the user

Format: [{{"index": 0, "score": 95, "reasoning": "..."}}, ...]

Recommend the top {limit} books, considering genre preferences, alignment scores, author diversity and thematic variety."""


def fallback_ranking(
    profile: ReadingProfile,
    candidates: list[BookCandidate],
) -> list[RankedRecommendation]:
    """Rank by alignment score, boosted for preferred genres, best first."""
    ranked = []
    for book in candidates:
        score = book.biblical_alignment_score or 0
        if book.genre_tag in profile.preferred_genres:
            score += GENRE_MATCH_BOOST
        ranked.append(
            RankedRecommendation(
                book_id=book.id,
                score=max(0, min(100, score)),
                reasoning=FALLBACK_REASONING,
            )
        )
    return sorted(ranked, key=lambda r: r.score, reverse=True)


async def rank_books(
    gateway: ModelGateway,
    profile: ReadingProfile,
    candidates: list[BookCandidate],
    limit: int = 10,
    retry_options: RetryOptions | None = None,
) -> list[RankedRecommendation]:
    """Rank ``candidates`` for ``profile``, returning at most ``limit`` books.

    Falls back to :func:`fallback_ranking` on any model or validation failure.
    """
    if not candidates:
        return []

    prompt = format_ranking_prompt(profile, candidates, limit)
    try:
        raw = await execute(
            lambda: gateway.json_completion(
                ModelTier.FAST,
                [{"role": "user", "content": prompt}],
                max_tokens=1000,
                temperature=0.3,
                operation="book_ranking",
            ),
            retry_options,
            name="book_ranking",
        )
        if not isinstance(raw, list):
            raise ValueError(f"Expected JSON array, got {type(raw).__name__}")

        ranked = []
        for item in raw:
            parsed = _RankedItem.model_validate(item)
            if parsed.index >= len(candidates):
                raise ValueError(f"Index {parsed.index} outside {len(candidates)} candidates")
            ranked.append(
                RankedRecommendation(
                    book_id=candidates[parsed.index].id,
                    score=parsed.score,
                    reasoning=parsed.reasoning,
                )
            )
    except Exception as e:
        logger.warning("book_ranking_fallback", error=str(e))
        return fallback_ranking(profile, candidates)[:limit]

    logger.info("book_ranking_complete", ranked=len(ranked))
    return ranked[:limit]
