"""Test fixtures for festivals module."""

import datetime

import pytest

from app.features.festivals.catalog import DemandLevel, FestivalRecord
from app.features.festivals.service import FestivalForecastService

SAMPLE_CSV = """festival_name,region,month,date_2026,type,public_holiday,top_selling_items,demand_level,estimated_demand_score
Diwali,All India,Oct-Nov,2026-11-08,Religious,Yes,"Diya, Sweets, Dry Fruits, Rangoli Colors",High,95
Holi,North India,Mar,2026-03-04,Religious,Yes,"Colors, Pichkari, Sweets",High,90

Diwali,All India,Oct-Nov,2026-11-08,Religious,Yes,"Something Else",Low,10
Pongal,South India,Jan,2026-01-14,Harvest,Yes,"Rice, Jaggery, Sugarcane, rice",Medium,70
,Nowhere,Feb,,,,,,
Short Fest,Somewhere,Jul
"""


def make_festival(
    name: str = "Lights Fest",
    month: str = "Oct",
    items: tuple[str, ...] = ("diya", "sweets"),
    demand_level: DemandLevel = DemandLevel.HIGH,
) -> FestivalRecord:
    """Build a catalog record with sensible defaults."""
    return FestivalRecord(
        name=name,
        region="All India",
        month=month,
        date="",
        type="Religious",
        is_public_holiday=True,
        top_selling_items=items,
        demand_level=demand_level,
        demand_score=90,
    )


@pytest.fixture
def festival_factory():
    """Factory for catalog records."""
    return make_festival


@pytest.fixture
def lights_fest_catalog():
    """Single-festival catalog: Lights Fest in October selling diya and sweets."""
    return (make_festival(),)


@pytest.fixture
def forecast_service(lights_fest_catalog):
    """Forecast service over the Lights Fest catalog."""
    return FestivalForecastService(catalog=lights_fest_catalog)


@pytest.fixture
def sample_csv_path(tmp_path):
    """Dataset file with quoted lists, a duplicate, a blank and malformed rows."""
    path = tmp_path / "festivals.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def sep_15():
    """Reference time: 15 September, mid-morning UTC."""
    return datetime.datetime(2026, 9, 15, 10, 0, tzinfo=datetime.UTC)
