"""Shared test fixtures."""

import datetime as dt

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from counsel_ai.ai.gateway import ModelGateway
from counsel_ai.api.app import app
from counsel_ai.api.deps import get_trigger
from counsel_ai.models.base import Base
from counsel_ai.models.support_ticket import SupportTicket
from counsel_ai.similarity.schemas import ComparableRecord
from fakes import FakeProvider


@pytest.fixture
async def test_engine():
    """Create an async SQLite in-memory engine for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def gateway(provider) -> ModelGateway:
    return ModelGateway(provider)


@pytest.fixture
def source_ticket() -> ComparableRecord:
    return ComparableRecord(
        id="t-src",
        title="Cannot log in",
        description="Login page spins forever after entering my password.",
    )


@pytest.fixture
async def seeded_tickets(test_session_factory):
    """Seed support tickets: three unresolved, two resolved with resolution, one closed without."""
    base = dt.datetime(2026, 10, 1, 9, 0)
    tickets = [
        SupportTicket(id="open-1", title="Login loop", description="Spins after password",
                      status="open", created_at=base),
        SupportTicket(id="open-2", title="Login stuck", description="Cannot get past login",
                      status="in_progress", created_at=base + dt.timedelta(minutes=1)),
        SupportTicket(id="open-3", title="Billing question", description="Charged twice",
                      status="waiting_on_user", created_at=base + dt.timedelta(minutes=2)),
        SupportTicket(id="done-1", title="Login spinner", description="Spinner on login",
                      resolution="Cleared stale session cookie", status="resolved",
                      created_at=base + dt.timedelta(minutes=3)),
        SupportTicket(id="done-2", title="Double charge", description="Card charged twice",
                      resolution="Refunded duplicate charge", status="closed",
                      created_at=base + dt.timedelta(minutes=4)),
        SupportTicket(id="done-3", title="Feature idea", description="Dark mode please",
                      resolution=None, status="closed",
                      created_at=base + dt.timedelta(minutes=5)),
    ]
    async with test_session_factory() as session, session.begin():
        session.add_all(tickets)
    return tickets


@pytest.fixture
async def api_client():
    """Async HTTP client hitting the FastAPI app; tests override ``get_trigger``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def override_trigger():
    def _override(trigger):
        app.dependency_overrides[get_trigger] = lambda: trigger
        return trigger
    return _override
