from __future__ import annotations

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from counsel_ai.models.base import Base


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id: Mapped[str] = mapped_column(sa.String, primary_key=True)
    title: Mapped[str] = mapped_column(sa.String)
    description: Mapped[str] = mapped_column(sa.Text)
    resolution: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    # open | in_progress | waiting_on_user | resolved | closed
    status: Mapped[str] = mapped_column(sa.String(32), default="open", index=True)
    priority: Mapped[str] = mapped_column(sa.String(16), default="medium")

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")
    )
