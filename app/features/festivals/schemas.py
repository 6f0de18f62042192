"""Pydantic schemas for festival forecast API contracts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.features.festivals.catalog import DemandLevel
from app.features.festivals.scoring import ConfidenceBucket


class ForecastItem(BaseModel):
    """One recommended item for the upcoming festival.

    Args:
        item_name: Inventory name when matched, otherwise the catalog name.
        catalog_item: Item name as it appears in the festival catalog.
        current_stock: Units on hand (0 when not stocked).
        velocity_score: Units sold per day over the velocity window.
        confidence: Confidence bucket.
        confidence_score: Numeric 0-100 score behind the bucket.
        reasoning: Short human-readable reasons.
        recommended_action: What the retailer should do.
        in_inventory: Whether the item matched a stock record.
    """

    model_config = ConfigDict(frozen=True)

    item_name: str
    catalog_item: str
    current_stock: float = Field(..., ge=0)
    velocity_score: float = Field(..., ge=0)
    confidence: ConfidenceBucket
    confidence_score: int = Field(..., ge=0, le=100)
    reasoning: list[str]
    recommended_action: str
    in_inventory: bool


class ConfidenceSummary(BaseModel):
    """Bucket counts over every catalog item, before truncation."""

    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0


class ForecastResult(BaseModel):
    """Festival demand forecast for one tenant.

    `items` holds at most `forecast_max_items` entries while `summary` and
    `total_matched_items` describe the full list.
    """

    has_forecast: bool
    message: str | None = None
    festival_name: str | None = None
    festival_type: str | None = None
    region: str | None = None
    month: str | None = None
    months_away: int | None = None
    is_imminent: bool | None = None
    demand_level: DemandLevel | None = None
    items: list[ForecastItem] = Field(default_factory=list)
    total_matched_items: int = 0
    summary: ConfidenceSummary = Field(default_factory=ConfidenceSummary)


class UpcomingFestival(BaseModel):
    """Calendar entry for a coming festival."""

    festival_name: str
    month: str
    months_away: int
    demand_level: DemandLevel
    type: str
    region: str
    is_public_holiday: bool


class UpcomingFestivalsResponse(BaseModel):
    """Festival calendar response."""

    festivals: list[UpcomingFestival]
    count: int
