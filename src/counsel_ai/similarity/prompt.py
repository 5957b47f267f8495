"""Prompt formatting for batch ticket comparison."""
from __future__ import annotations

from counsel_ai.similarity.schemas import ComparableRecord

_MAX_FIELD_CHARS = 1000


def format_comparison_prompt(
    source: ComparableRecord,
    candidates: list[ComparableRecord],
    min_score: int,
) -> str:
    """Format a source ticket and an indexed candidate batch for scoring.

    Candidates are referenced by their position in ``candidates``; the
    model answers with ``{"index", "score"}`` pairs.
    """
    candidate_blocks = "\n".join(
        _format_candidate(i, c) for i, c in enumerate(candidates)
    )

    return f"""Compare this ticket to the following tickets and return similarity scores (0-100).

SOURCE TICKET:
Title: {source.title}
Description: {_truncate(source.description, _MAX_FIELD_CHARS)}

CANDIDATE TICKETS:
{candidate_blocks}

Return JSON array: [{{"index": 0, "score": 85}}, {{"index": 1, "score": 62}}, ...]
Only include scores above {min_score}. Return empty array [] if no matches."""


def _format_candidate(index: int, candidate: ComparableRecord) -> str:
    lines = [
        f"[{index}] ID: {candidate.id}",
        f"Title: {candidate.title}",
        f"Description: {_truncate(candidate.description, _MAX_FIELD_CHARS)}",
    ]
    if candidate.resolution:
        lines.append(f"Resolution: {_truncate(candidate.resolution, _MAX_FIELD_CHARS)}")
    return "\n" + "\n".join(lines)


def _truncate(text: str, max_len: int) -> str:
    """Truncate text to max_len, adding ellipsis if needed."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."
