"""Tests for the festival forecast service."""

import datetime

import pytest

from app.features.festivals.catalog import DemandLevel
from app.features.festivals.scoring import ConfidenceBucket
from app.features.festivals.service import (
    ACTION_ADD,
    ACTION_MONITOR,
    ACTION_RESTOCK,
    ACTION_RESTOCK_URGENT,
    NO_FESTIVAL_MESSAGE,
    FestivalForecastService,
)


def days_before(moment: datetime.datetime, days: int) -> datetime.datetime:
    return moment - datetime.timedelta(days=days)


class TestAssembleScenarios:
    """End-to-end forecasts over an in-memory store."""

    @pytest.mark.asyncio
    async def test_new_shop_gets_add_recommendations(self, forecast_service, retail_store, sep_15):
        """Should recommend adding every item when the shop has no data."""
        result = await forecast_service.assemble(retail_store, 1, now=sep_15)

        assert result.has_forecast is True
        assert result.festival_name == "Lights Fest"
        assert result.months_away == 1
        assert result.is_imminent is True
        assert result.demand_level is DemandLevel.HIGH
        assert [i.item_name for i in result.items] == ["diya", "sweets"]
        for item in result.items:
            assert item.in_inventory is False
            assert item.current_stock == 0
            assert item.recommended_action == ACTION_ADD
            assert item.confidence_score == 55
            assert item.confidence is ConfidenceBucket.MEDIUM
            assert item.reasoning == [
                "Festival approaching soon",
                "High seasonal demand",
                "Not in inventory - consider adding",
            ]
        assert result.summary.medium_confidence == 2

    @pytest.mark.asyncio
    async def test_out_of_stock_item_at_velocity_boundary(
        self, forecast_service, retail_store, sep_15
    ):
        """Should score exactly 0.5 units/day in the lower velocity tier."""
        retail_store.add_item("diya", stock=0)
        retail_store.add_sale(days_before(sep_15, 3), ("diya", 15, 5, 3))

        result = await forecast_service.assemble(retail_store, 1, now=sep_15)

        diya = next(i for i in result.items if i.catalog_item == "diya")
        assert diya.in_inventory is True
        assert diya.velocity_score == 0.5
        assert diya.confidence_score == 65
        assert diya.confidence is ConfidenceBucket.MEDIUM
        assert diya.recommended_action == ACTION_RESTOCK_URGENT
        assert "Recent sales: 15.0 units" in diya.reasoning
        assert "Currently out of stock" in diya.reasoning

    @pytest.mark.asyncio
    async def test_passed_festival_is_a_year_away(self, forecast_service, retail_store):
        """Should roll over to next year when the festival month is past day 20."""
        now = datetime.datetime(2026, 10, 25, 9, 0, tzinfo=datetime.UTC)

        result = await forecast_service.assemble(retail_store, 1, now=now)

        assert result.months_away == 12
        assert result.is_imminent is False
        assert all(i.confidence is ConfidenceBucket.LOW for i in result.items)
        assert result.items[0].confidence_score == 15
        assert result.items[0].reasoning[0] == "High seasonal demand"

    @pytest.mark.asyncio
    async def test_ranks_high_before_medium_keeping_catalog_order(
        self, festival_factory, retail_store, sep_15
    ):
        """Should sort by bucket, then keep catalog order within a bucket."""
        service = FestivalForecastService(
            catalog=[festival_factory(items=("marigold garland", "brass lamp", "camphor"))]
        )
        retail_store.add_item("Brass Lamp", stock=50)
        retail_store.add_item("Camphor", stock=20)
        retail_store.add_sale(days_before(sep_15, 1), ("Camphor", 90, 2, 1))

        result = await service.assemble(retail_store, 1, now=sep_15)

        assert [i.item_name for i in result.items] == ["Brass Lamp", "Camphor", "marigold garland"]
        assert [i.confidence_score for i in result.items] == [70, 100, 55]
        assert result.items[0].recommended_action == ACTION_MONITOR
        assert result.summary.high_confidence == 2
        assert result.summary.medium_confidence == 1

    @pytest.mark.asyncio
    async def test_low_stock_item_gets_restock_recommendation(
        self, forecast_service, retail_store, sep_15
    ):
        """Should recommend restocking below the low-stock threshold."""
        retail_store.add_item("Sweets", stock=5)

        result = await forecast_service.assemble(retail_store, 1, now=sep_15)

        sweets = next(i for i in result.items if i.catalog_item == "sweets")
        assert sweets.item_name == "Sweets"
        assert sweets.current_stock == 5
        assert sweets.recommended_action == ACTION_RESTOCK
        assert "Low stock" in sweets.reasoning

    @pytest.mark.asyncio
    async def test_empty_catalog_has_no_forecast(self, retail_store, sep_15):
        """Should return an explicit no-forecast result without reading the store."""
        service = FestivalForecastService(catalog=[])

        result = await service.assemble(retail_store, 1, now=sep_15)

        assert result.has_forecast is False
        assert result.message == NO_FESTIVAL_MESSAGE
        assert result.items == []
        assert retail_store.sales_queries == []


class TestForecastProperties:
    """Determinism, bounds and coverage."""

    @pytest.mark.asyncio
    async def test_same_inputs_same_result(self, forecast_service, retail_store, sep_15):
        """Should produce identical results for identical inputs."""
        retail_store.add_item("Diya", stock=3)
        retail_store.add_sale(days_before(sep_15, 2), ("Diya", 40, 5, 3))

        first = await forecast_service.assemble(retail_store, 1, now=sep_15)
        second = await forecast_service.assemble(retail_store, 1, now=sep_15)

        assert first.model_dump_json() == second.model_dump_json()

    @pytest.mark.asyncio
    async def test_items_capped_but_summary_counts_everything(
        self, festival_factory, retail_store, sep_15
    ):
        """Should return at most ten items while counting all of them."""
        catalog_items = tuple(f"item {n:02d}" for n in range(12))
        service = FestivalForecastService(catalog=[festival_factory(items=catalog_items)])

        result = await service.assemble(retail_store, 1, now=sep_15)

        summary = result.summary
        assert len(result.items) == 10
        assert result.total_matched_items == 12
        assert summary.high_confidence + summary.medium_confidence + summary.low_confidence == 12

    @pytest.mark.asyncio
    async def test_every_catalog_item_appears_once(self, festival_factory, retail_store, sep_15):
        """Should list each catalog item once, even when two match the same stock."""
        catalog_items = ("oil", "cooking oil", "lamps", "flowers")
        service = FestivalForecastService(catalog=[festival_factory(items=catalog_items)])
        retail_store.add_item("Cooking Oil", stock=30)

        result = await service.assemble(retail_store, 1, now=sep_15)

        assert sorted(i.catalog_item for i in result.items) == sorted(catalog_items)
        oil_rows = [i for i in result.items if i.item_name == "Cooking Oil"]
        assert len(oil_rows) == 2


class TestBuildForecast:
    """Tests for the pure assembly step."""

    def test_no_nearest_festival(self, forecast_service):
        """Should report no forecast when nothing was resolved."""
        result = forecast_service.build_forecast(None, [], {})

        assert result.has_forecast is False
        assert result.total_matched_items == 0


class TestUpcoming:
    """Tests for the festival calendar."""

    def test_upcoming_response(self, festival_factory):
        """Should map calendar entries to response rows."""
        service = FestivalForecastService(
            catalog=[
                festival_factory(name="Holi", month="Mar", demand_level=DemandLevel.HIGH),
                festival_factory(name="Ugadi", month="Apr", demand_level=DemandLevel.MEDIUM),
            ]
        )

        response = service.upcoming(count=2, reference=datetime.date(2026, 3, 2))

        assert response.count == 2
        assert [f.festival_name for f in response.festivals] == ["Holi", "Ugadi"]
        assert response.festivals[0].months_away == 0
        assert response.festivals[1].demand_level is DemandLevel.MEDIUM
