"""Festival demand forecast assembly.

Combines the nearest catalog festival with a tenant's stock and recent sales
into a ranked list of recommendations. Only pre-computed metrics leave this
module; raw inventory and sales never reach the LLM layer.

Every item in the festival's top-selling list is surfaced, stocked or not.
"""

from __future__ import annotations

import datetime
from collections import Counter
from collections.abc import Mapping, Sequence
from decimal import Decimal

from app.core.config import get_settings
from app.core.logging import get_logger
from app.features.festivals.catalog import DemandLevel, FestivalRecord, get_festival_catalog
from app.features.festivals.matcher import match_inventory_item
from app.features.festivals.proximity import NearestFestival, find_nearest, upcoming_festivals
from app.features.festivals.schemas import (
    ConfidenceSummary,
    ForecastItem,
    ForecastResult,
    UpcomingFestival,
    UpcomingFestivalsResponse,
)
from app.features.festivals.scoring import ConfidenceBucket, ConfidenceSignals, score
from app.features.festivals.velocity import VelocityStat, fetch_velocity
from app.features.retail.models import InventoryItem
from app.features.retail.stores import ForecastStore

logger = get_logger(__name__)

NO_FESTIVAL_MESSAGE = "No upcoming festivals found in dataset"

ACTION_ADD = "Add to inventory"
ACTION_RESTOCK_URGENT = "Restock urgently"
ACTION_RESTOCK = "Restock recommended"
ACTION_MONITOR = "Monitor stock"


def recommend_action(item: InventoryItem | None, low_stock_threshold: int) -> str:
    """Pick the recommended action from stock state."""
    if item is None:
        return ACTION_ADD
    if item.stock_quantity <= 0:
        return ACTION_RESTOCK_URGENT
    if item.stock_quantity < low_stock_threshold:
        return ACTION_RESTOCK
    return ACTION_MONITOR


def build_reasoning(
    nearest: NearestFestival,
    item: InventoryItem | None,
    velocity: VelocityStat | None,
    low_stock_threshold: int,
) -> list[str]:
    """Explain a recommendation in short phrases."""
    reasons: list[str] = []
    if nearest.is_imminent:
        reasons.append("Festival approaching soon")
    elif nearest.months_away <= 2:
        reasons.append(f"Festival in {nearest.months_away} month(s)")

    if nearest.festival.demand_level is DemandLevel.HIGH:
        reasons.append("High seasonal demand")

    if item is None:
        reasons.append("Not in inventory - consider adding")
        return reasons

    if velocity is not None and velocity.sales_count > 0:
        reasons.append(f"Recent sales: {velocity.total_quantity:.1f} units")
    if item.stock_quantity <= 0:
        reasons.append("Currently out of stock")
    elif item.stock_quantity < low_stock_threshold:
        reasons.append("Low stock")
    return reasons


class FestivalForecastService:
    """Service for festival demand forecasts and the festival calendar.

    The catalog is shared and read-only; all tenant state is passed in per
    call, so one instance can serve concurrent requests.
    """

    def __init__(self, catalog: Sequence[FestivalRecord] | None = None) -> None:
        """Initialize with an explicit catalog or the process-wide one."""
        self.settings = get_settings()
        self.catalog = tuple(catalog) if catalog is not None else get_festival_catalog()

    def forecast_item(
        self,
        nearest: NearestFestival,
        catalog_item: str,
        inventory: Sequence[InventoryItem],
        velocity: Mapping[str, VelocityStat],
    ) -> ForecastItem:
        """Score and describe one catalog item against the tenant's data."""
        matched = match_inventory_item(
            catalog_item,
            inventory,
            min_keyword_length=self.settings.matcher_min_keyword_length,
        )
        key = (matched.name if matched is not None else catalog_item).lower()
        stat = velocity.get(key)
        velocity_score = stat.velocity_score if stat is not None else 0.0
        stock = matched.stock_quantity if matched is not None else Decimal("0")

        confidence = score(
            ConfidenceSignals(
                months_away=nearest.months_away,
                is_imminent=nearest.is_imminent,
                has_recent_sales=stat is not None and stat.sales_count > 0,
                velocity_score=velocity_score,
                in_stock=matched is not None and stock > 0,
                demand_level=nearest.festival.demand_level,
            )
        )
        threshold = self.settings.forecast_low_stock_threshold

        return ForecastItem(
            item_name=matched.name if matched is not None else catalog_item,
            catalog_item=catalog_item,
            current_stock=float(stock),
            velocity_score=round(velocity_score, 2),
            confidence=confidence.bucket,
            confidence_score=confidence.numeric_score,
            reasoning=build_reasoning(nearest, matched, stat, threshold),
            recommended_action=recommend_action(matched, threshold),
            in_inventory=matched is not None,
        )

    def build_forecast(
        self,
        nearest: NearestFestival | None,
        inventory: Sequence[InventoryItem],
        velocity: Mapping[str, VelocityStat],
    ) -> ForecastResult:
        """Assemble the forecast from already-fetched data.

        Pure: the same inputs always give the same result.
        """
        if nearest is None:
            return ForecastResult(has_forecast=False, message=NO_FESTIVAL_MESSAGE)

        festival = nearest.festival
        items = [
            self.forecast_item(nearest, catalog_item, inventory, velocity)
            for catalog_item in festival.top_selling_items
        ]
        # stable: catalog order is kept within a bucket
        items.sort(key=lambda item: item.confidence.rank, reverse=True)

        counts = Counter(item.confidence for item in items)
        return ForecastResult(
            has_forecast=True,
            festival_name=festival.name,
            festival_type=festival.type,
            region=festival.region,
            month=festival.month,
            months_away=nearest.months_away,
            is_imminent=nearest.is_imminent,
            demand_level=festival.demand_level,
            items=items[: self.settings.forecast_max_items],
            total_matched_items=len(items),
            summary=ConfidenceSummary(
                high_confidence=counts[ConfidenceBucket.HIGH],
                medium_confidence=counts[ConfidenceBucket.MEDIUM],
                low_confidence=counts[ConfidenceBucket.LOW],
            ),
        )

    async def assemble(
        self,
        store: ForecastStore,
        tenant_id: int,
        now: datetime.datetime | None = None,
    ) -> ForecastResult:
        """Produce the festival demand forecast for a tenant.

        Args:
            store: Tenant data source (inventory and sales).
            tenant_id: Retailer id.
            now: Reference time (defaults to the current UTC time).

        Returns:
            Forecast result; `has_forecast=False` when the catalog is empty.
        """
        now = now or datetime.datetime.now(datetime.UTC)
        nearest = find_nearest(self.catalog, now.date())
        if nearest is None:
            logger.warning(
                "festivals.no_festival_found",
                tenant_id=tenant_id,
                catalog_size=len(self.catalog),
            )
            return self.build_forecast(None, [], {})

        # The two reads are independent. They run one after the other because
        # a single AsyncSession does not allow concurrent statements.
        inventory = await store.list_inventory(tenant_id)
        velocity = await fetch_velocity(
            store,
            tenant_id,
            self.settings.forecast_velocity_window_days,
            now=now,
        )

        result = self.build_forecast(nearest, inventory, velocity)

        logger.info(
            "festivals.forecast_assembled",
            tenant_id=tenant_id,
            festival=result.festival_name,
            months_away=result.months_away,
            total_items=result.total_matched_items,
            returned_items=len(result.items),
            high=result.summary.high_confidence,
            medium=result.summary.medium_confidence,
            low=result.summary.low_confidence,
        )
        return result

    def upcoming(
        self,
        count: int = 5,
        reference: datetime.date | None = None,
    ) -> UpcomingFestivalsResponse:
        """List the festivals coming up over the next `count` months."""
        festivals = [
            UpcomingFestival(
                festival_name=entry.festival.name,
                month=entry.festival.month,
                months_away=entry.months_away,
                demand_level=entry.festival.demand_level,
                type=entry.festival.type,
                region=entry.festival.region,
                is_public_holiday=entry.festival.is_public_holiday,
            )
            for entry in upcoming_festivals(self.catalog, count, reference)
        ]
        return UpcomingFestivalsResponse(festivals=festivals, count=len(festivals))
