"""Test fixtures for assistant module."""

import datetime
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.features.assistant.pending import PendingOperationStore
from app.features.assistant.service import AssistantService
from app.features.business_tools.service import BusinessToolsService
from app.features.festivals.catalog import DemandLevel, FestivalRecord
from app.features.festivals.service import FestivalForecastService

NOW = datetime.datetime(2026, 9, 15, 10, 0, tzinfo=datetime.UTC)


def make_agent(output=None, error: Exception | None = None) -> MagicMock:
    """Fake pydantic-ai agent whose run() returns `output` or raises `error`."""
    agent = MagicMock()
    if error is not None:
        agent.run = AsyncMock(side_effect=error)
    else:
        agent.run = AsyncMock(return_value=MagicMock(output=output))
    return agent


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime.datetime = NOW) -> None:
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def now():
    """Fixed reference time: 15 September 2026, 10:00 UTC."""
    return NOW


@pytest.fixture
def fake_clock():
    """Clock starting at the reference time."""
    return FakeClock()


@pytest.fixture
def failing_agent():
    """Agent whose every run fails, forcing the deterministic fallbacks."""
    return make_agent(error=RuntimeError("provider unavailable"))


@pytest.fixture
def assistant(failing_agent):
    """Assistant with offline agents and a fresh pending store."""
    return AssistantService(
        pending=PendingOperationStore(ttl=datetime.timedelta(minutes=10)),
        intent_agent=failing_agent,
        response_agent=failing_agent,
    )


@pytest.fixture
def scope_log():
    """Records each time a tools scope is entered."""
    return []


@pytest.fixture
def tools_scope(retail_store, now, scope_log):
    """Scope factory yielding business tools over the in-memory store."""
    forecast_service = FestivalForecastService(
        catalog=(
            FestivalRecord(
                name="Lights Fest",
                region="All India",
                month="Oct",
                date="",
                type="Religious",
                is_public_holiday=True,
                top_selling_items=("diya", "sweets"),
                demand_level=DemandLevel.HIGH,
                demand_score=90,
            ),
        )
    )

    @asynccontextmanager
    async def scope():
        scope_log.append("enter")
        yield BusinessToolsService(retail_store, forecast_service=forecast_service, clock=lambda: now)

    return scope


@pytest.fixture
def agent_factory():
    """Factory for fake agents."""
    return make_agent
