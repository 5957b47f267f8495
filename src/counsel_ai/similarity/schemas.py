"""Pydantic schemas for ticket similarity."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class MatchType(str, Enum):
    """Real-time comparison against open tickets vs batch against resolved ones."""

    ACTIVE = "active"
    HISTORICAL = "historical"


class ComparableRecord(BaseModel):
    """A ticket as seen by the comparator."""

    id: str
    title: str
    description: str = ""
    resolution: str | None = None


class SimilarityResult(BaseModel):
    similar_ticket_id: str
    score: int = Field(ge=0, le=100)


class CandidateScore(BaseModel):
    """One element of the model's JSON answer: ``{"index": 0, "score": 85}``."""

    index: int = Field(ge=0)
    score: int = Field(ge=0, le=100)


@dataclass
class ComparisonOutcome:
    """Comparator result that keeps "no matches" apart from "call failed"."""

    results: list[SimilarityResult] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
