"""SQLAlchemy model for tracking AI API usage and costs."""
from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from counsel_ai.models.base import Base


class AIUsageLog(Base):
    """Logs each model call with token counts and estimated cost.

    ``operation`` names the calling feature (``ticket_similarity``,
    ``priority_detection``, ...) so cost can be broken down per feature.
    """

    __tablename__ = "ai_usage_log"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    operation: Mapped[str] = mapped_column(sa.String, index=True)
    model: Mapped[str] = mapped_column(sa.String)
    prompt_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    completion_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_tokens: Mapped[int] = mapped_column(sa.Integer, default=0)
    estimated_cost_usd: Mapped[float] = mapped_column(sa.Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")
    )
