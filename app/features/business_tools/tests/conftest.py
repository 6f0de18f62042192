"""Test fixtures for business tools module."""

import datetime

import pytest

from app.features.business_tools.service import BusinessToolsService
from app.features.festivals.catalog import DemandLevel, FestivalRecord
from app.features.festivals.service import FestivalForecastService

NOW = datetime.datetime(2026, 9, 15, 10, 0, tzinfo=datetime.UTC)


@pytest.fixture
def now():
    """Fixed reference time: 15 September 2026, 10:00 UTC."""
    return NOW


@pytest.fixture
def october_catalog():
    """One October festival selling diya and sweets."""
    return (
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


@pytest.fixture
def tools_service(retail_store, october_catalog, now):
    """Business tools over the in-memory store with a frozen clock."""
    return BusinessToolsService(
        retail_store,
        forecast_service=FestivalForecastService(catalog=october_catalog),
        clock=lambda: now,
    )
