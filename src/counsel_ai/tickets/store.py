"""Ticket reads for the similarity features.

``TicketStore`` is what the similarity services depend on;
``SqlTicketStore`` binds it to the support_tickets table.
"""
from __future__ import annotations

from enum import Enum
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from counsel_ai.models.support_ticket import SupportTicket
from counsel_ai.similarity.schemas import ComparableRecord

UNRESOLVED_STATUSES = ("open", "in_progress", "waiting_on_user")
RESOLVED_STATUSES = ("resolved", "closed")


class TicketFilter(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVED_WITH_RESOLUTION = "resolved_with_resolution"


class TicketStore(Protocol):
    async def find_by_id(self, ticket_id: str) -> ComparableRecord | None: ...

    async def find_many(
        self,
        ticket_filter: TicketFilter,
        limit: int | None = None,
        exclude_id: str | None = None,
    ) -> list[ComparableRecord]: ...


def _to_record(ticket: SupportTicket) -> ComparableRecord:
    return ComparableRecord(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description or "",
        resolution=ticket.resolution,
    )


class SqlTicketStore:
    def __init__(self, session_factory: async_sessionmaker) -> None:
        self.session_factory = session_factory

    async def find_by_id(self, ticket_id: str) -> ComparableRecord | None:
        async with self.session_factory() as session:
            ticket = await session.get(SupportTicket, ticket_id)
        return _to_record(ticket) if ticket is not None else None

    async def find_many(
        self,
        ticket_filter: TicketFilter,
        limit: int | None = None,
        exclude_id: str | None = None,
    ) -> list[ComparableRecord]:
        """Load tickets matching ``ticket_filter``, oldest first."""
        ticket_filter = TicketFilter(ticket_filter)
        stmt = select(SupportTicket)
        if ticket_filter is TicketFilter.UNRESOLVED:
            stmt = stmt.where(SupportTicket.status.in_(UNRESOLVED_STATUSES))
        else:
            stmt = stmt.where(
                SupportTicket.status.in_(RESOLVED_STATUSES),
                SupportTicket.resolution.is_not(None),
            )
        if exclude_id is not None:
            stmt = stmt.where(SupportTicket.id != exclude_id)
        stmt = stmt.order_by(SupportTicket.created_at, SupportTicket.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self.session_factory() as session:
            tickets = (await session.execute(stmt)).scalars().all()
        return [_to_record(t) for t in tickets]
