"""Deterministic business metrics for the retailer assistant.

Each tool computes its answer server-side from the tenant's records, so the
LLM only ever sees compact, already-aggregated numbers.
"""

from __future__ import annotations

import calendar
import datetime
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from app.core.config import get_settings
from app.core.logging import get_logger
from app.features.business_tools.schemas import (
    BusinessOverview,
    ExpenseBreakdown,
    ExpenseCategory,
    InventoryCategory,
    InventorySummary,
    LowStockEntry,
    LowStockReport,
    MonthlyRevenue,
    OutOfStockEntry,
    OverviewInventory,
    OverviewOrders,
    PendingOrderEntry,
    PendingOrders,
    ProductSales,
    TodaysProfit,
    TopSellingProducts,
)
from app.features.festivals.schemas import ForecastResult, UpcomingFestivalsResponse
from app.features.festivals.service import FestivalForecastService
from app.features.retail.models import Expense, InventoryItem, Sale
from app.features.retail.stores import RetailStore
from app.shared.models import utc_now

logger = get_logger(__name__)

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric value (None counts as zero) to Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    """Round to cents."""
    return to_decimal(value).quantize(CENT)


def _day_start(moment: datetime.datetime) -> datetime.datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _totals(sales: list[Sale], expenses: list[Expense]) -> tuple[Decimal, Decimal, Decimal]:
    revenue = sum((to_decimal(s.total_amount) for s in sales), Decimal("0"))
    cogs = sum((to_decimal(s.total_cogs) for s in sales), Decimal("0"))
    spent = sum((to_decimal(e.amount) for e in expenses), Decimal("0"))
    return revenue, cogs, spent


class BusinessToolsService:
    """Service exposing tenant-scoped business metrics.

    Args:
        store: Read-only tenant data source.
        forecast_service: Festival forecast service (defaults to a new one).
        clock: Returns "now"; injectable for deterministic tests.
    """

    def __init__(
        self,
        store: RetailStore,
        forecast_service: FestivalForecastService | None = None,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.settings = get_settings()
        self.store = store
        self.forecast_service = forecast_service or FestivalForecastService()
        self.clock = clock

    async def get_todays_profit(self, tenant_id: int) -> TodaysProfit:
        """Revenue, COGS, expenses and profit since midnight (UTC)."""
        start = _day_start(self.clock())
        end = start + datetime.timedelta(days=1)
        sales = list(await self.store.list_sales(tenant_id, start, end))
        expenses = list(await self.store.list_expenses(tenant_id, start, end))

        revenue, cogs, spent = _totals(sales, expenses)
        net_profit = revenue - cogs - spent
        margin = net_profit / revenue * 100 if revenue > 0 else Decimal("0")

        return TodaysProfit(
            date=start.date(),
            revenue=money(revenue),
            cogs=money(cogs),
            expenses=money(spent),
            gross_profit=money(revenue - cogs),
            net_profit=money(net_profit),
            profit_margin=money(margin),
            sales_count=len(sales),
        )

    async def get_low_stock_items(
        self,
        tenant_id: int,
        threshold: float | None = None,
    ) -> LowStockReport:
        """Items at or below their minimum level, and items with no stock.

        An explicit `threshold` (zero included) replaces each item's own minimum
        level as the cut-off; entries still report the item's own level.
        """
        inventory = await self.store.list_inventory(tenant_id)
        default_level = self.settings.tools_default_min_stock_level

        low: list[LowStockEntry] = []
        out: list[OutOfStockEntry] = []
        for item in inventory:
            stock = to_decimal(item.stock_quantity)
            own_level = to_decimal(item.min_stock_level or default_level)
            level = to_decimal(threshold) if threshold is not None else own_level
            if stock <= 0:
                out.append(
                    OutOfStockEntry(
                        item_name=item.name,
                        category=item.category,
                        last_price=money(item.price_per_unit),
                    )
                )
            elif stock <= level:
                low.append(
                    LowStockEntry(
                        item_name=item.name,
                        current_stock=float(stock),
                        min_stock_level=float(own_level),
                        category=item.category,
                        price_per_unit=money(item.price_per_unit),
                    )
                )

        return LowStockReport(
            low_stock=low,
            out_of_stock=out,
            total_low_stock=len(low),
            total_out_of_stock=len(out),
        )

    async def get_top_selling_products(
        self,
        tenant_id: int,
        limit: int | None = None,
        days: int | None = None,
    ) -> TopSellingProducts:
        """Best sellers over the last `days` days, by revenue and by quantity."""
        limit = limit or self.settings.tools_default_limit
        days = days or self.settings.tools_default_days
        start = self.clock() - datetime.timedelta(days=days)
        sales = await self.store.list_sales(tenant_id, start, None)

        stats: dict[str, dict[str, Any]] = {}
        for sale in sales:
            for line in sale.items:
                entry = stats.setdefault(
                    line.name,
                    {
                        "quantity": Decimal("0"),
                        "revenue": Decimal("0"),
                        "profit": Decimal("0"),
                        "count": 0,
                    },
                )
                quantity = to_decimal(line.quantity)
                revenue = quantity * to_decimal(line.price_per_unit)
                entry["quantity"] += quantity
                entry["revenue"] += revenue
                entry["profit"] += revenue - quantity * to_decimal(line.cost_per_unit)
                entry["count"] += 1

        products = [
            ProductSales(
                item_name=name,
                total_quantity=float(entry["quantity"]),
                total_revenue=money(entry["revenue"]),
                total_profit=money(entry["profit"]),
                sales_count=entry["count"],
            )
            for name, entry in stats.items()
        ]

        return TopSellingProducts(
            period_days=days,
            top_by_revenue=sorted(products, key=lambda p: p.total_revenue, reverse=True)[:limit],
            top_by_quantity=sorted(products, key=lambda p: p.total_quantity, reverse=True)[:limit],
            total_unique_products_sold=len(products),
        )

    async def get_monthly_revenue(
        self,
        tenant_id: int,
        year: int | None = None,
        month: int | None = None,
    ) -> MonthlyRevenue:
        """Financial summary for a calendar month (1-12), default current."""
        now = self.clock()
        year = year or now.year
        month = month or now.month
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")

        start = datetime.datetime(year, month, 1, tzinfo=now.tzinfo)
        end = datetime.datetime(
            year + month // 12, month % 12 + 1, 1, tzinfo=now.tzinfo
        )
        sales = list(await self.store.list_sales(tenant_id, start, end))
        expenses = list(await self.store.list_expenses(tenant_id, start, end))

        revenue, cogs, spent = _totals(sales, expenses)
        avg = revenue / len(sales) if sales else Decimal("0")

        return MonthlyRevenue(
            year=year,
            month=month,
            month_name=calendar.month_name[month],
            revenue=money(revenue),
            cogs=money(cogs),
            expenses=money(spent),
            gross_profit=money(revenue - cogs),
            net_profit=money(revenue - cogs - spent),
            sales_count=len(sales),
            avg_sale_value=money(avg),
        )

    async def get_expense_breakdown(
        self,
        tenant_id: int,
        days: int | None = None,
    ) -> ExpenseBreakdown:
        """Expenses per category over the last `days` days."""
        days = days or self.settings.tools_default_days
        start = self.clock() - datetime.timedelta(days=days)
        expenses = await self.store.list_expenses(tenant_id, start, None)

        categories: dict[str, ExpenseCategory] = {}
        total = Decimal("0")
        for expense in expenses:
            name = expense.category or "Other"
            entry = categories.setdefault(
                name,
                ExpenseCategory(
                    category=name,
                    total_amount=Decimal("0"),
                    count=0,
                    is_sales_expense=bool(expense.is_sales_expense),
                ),
            )
            amount = to_decimal(expense.amount)
            entry.total_amount += amount
            entry.count += 1
            total += amount

        ranked = sorted(categories.values(), key=lambda c: c.total_amount, reverse=True)
        for entry in ranked:
            entry.total_amount = money(entry.total_amount)

        return ExpenseBreakdown(
            period_days=days,
            total_expenses=money(total),
            categories=ranked,
            expense_count=len(expenses),
        )

    async def get_inventory_summary(self, tenant_id: int) -> InventorySummary:
        """Stock valuation at cost and retail, with a per-category breakdown."""
        inventory: list[InventoryItem] = list(await self.store.list_inventory(tenant_id))
        default_level = to_decimal(self.settings.tools_default_min_stock_level)

        stock_value = Decimal("0")
        retail_value = Decimal("0")
        categories: dict[str, dict[str, Any]] = {}
        for item in inventory:
            stock = to_decimal(item.stock_quantity)
            at_cost = stock * to_decimal(item.cost_per_unit)
            stock_value += at_cost
            retail_value += stock * to_decimal(item.price_per_unit)

            entry = categories.setdefault(
                item.category or "Other",
                {"count": 0, "units": Decimal("0"), "value": Decimal("0")},
            )
            entry["count"] += 1
            entry["units"] += stock
            entry["value"] += at_cost

        low_count = sum(
            1
            for item in inventory
            if to_decimal(item.stock_quantity) <= to_decimal(item.min_stock_level or default_level)
        )
        out_count = sum(1 for item in inventory if to_decimal(item.stock_quantity) <= 0)

        return InventorySummary(
            total_items=len(inventory),
            total_stock_value=money(stock_value),
            total_retail_value=money(retail_value),
            potential_profit=money(retail_value - stock_value),
            categories=[
                InventoryCategory(
                    category=name,
                    item_count=entry["count"],
                    total_units=float(entry["units"]),
                    stock_value=money(entry["value"]),
                )
                for name, entry in categories.items()
            ],
            low_stock_count=low_count,
            out_of_stock_count=out_count,
        )

    async def get_pending_orders(self, tenant_id: int) -> PendingOrders:
        """Pending customer orders, newest first."""
        orders = await self.store.list_pending_orders(tenant_id)
        total = sum((to_decimal(o.total_amount) for o in orders), Decimal("0"))

        return PendingOrders(
            pending_count=len(orders),
            total_value=money(total),
            orders=[
                PendingOrderEntry(
                    order_id=order.id,
                    customer_name=order.customer_name,
                    customer_phone=order.customer_phone,
                    items_count=order.items_count or 0,
                    total_amount=money(order.total_amount),
                    created_at=order.created_at,
                )
                for order in orders
            ],
        )

    async def get_business_overview(self, tenant_id: int) -> BusinessOverview:
        """Today's profit plus stock and order counts."""
        # Sequential: the store may share one AsyncSession.
        today = await self.get_todays_profit(tenant_id)
        low_stock = await self.get_low_stock_items(tenant_id)
        orders = await self.get_pending_orders(tenant_id)
        summary = await self.get_inventory_summary(tenant_id)

        logger.info(
            "business_tools.overview_built",
            tenant_id=tenant_id,
            sales_count=today.sales_count,
            low_stock=low_stock.total_low_stock,
            pending_orders=orders.pending_count,
        )
        return BusinessOverview(
            today=today,
            inventory=OverviewInventory(
                total_items=summary.total_items,
                low_stock_count=low_stock.total_low_stock,
                out_of_stock_count=low_stock.total_out_of_stock,
                total_value=summary.total_stock_value,
            ),
            orders=OverviewOrders(
                pending_count=orders.pending_count,
                total_value=orders.total_value,
            ),
        )

    async def get_festival_demand_forecast(self, tenant_id: int) -> ForecastResult:
        """Festival demand forecast for the tenant."""
        return await self.forecast_service.assemble(self.store, tenant_id, now=self.clock())

    async def get_upcoming_festivals(self, count: int | None = None) -> UpcomingFestivalsResponse:
        """Festival calendar; not tenant-specific."""
        count = count or self.settings.tools_default_festival_count
        return self.forecast_service.upcoming(count=count, reference=self.clock().date())
