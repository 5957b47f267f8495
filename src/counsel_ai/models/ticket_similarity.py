"""SQLAlchemy model for cached ticket-similarity judgments."""
from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from counsel_ai.models.base import Base


class TicketSimilarity(Base):
    """One cached relatedness score between a source ticket and a candidate.

    Rows for a (source_ticket_id, match_type) pair form a snapshot: every
    recomputation deletes the previous rows and inserts the new set. Rows
    past ``expires_at`` are filtered out on read and purged by the daily
    cleanup job.
    """

    __tablename__ = "ticket_similarity"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    source_ticket_id: Mapped[str] = mapped_column(sa.String)
    similar_ticket_id: Mapped[str] = mapped_column(sa.String)
    similarity_score: Mapped[int] = mapped_column(sa.Integer)
    match_type: Mapped[str] = mapped_column(sa.String(16))  # "active" or "historical"
    expires_at: Mapped[datetime] = mapped_column(sa.DateTime, index=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        sa.Index("ix_ticket_similarity_source_match_type", "source_ticket_id", "match_type"),
        sa.CheckConstraint(
            "match_type IN ('active', 'historical')", name="valid_match_type"
        ),
        sa.CheckConstraint(
            "similarity_score >= 0 AND similarity_score <= 100",
            name="similarity_score_range",
        ),
    )
