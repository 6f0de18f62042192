"""Pydantic schemas for business tool results.

Money is Decimal, quantities are float (inventory supports fractional units).
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TodaysProfit(BaseModel):
    """Profit for a single calendar day."""

    date: datetime.date
    revenue: Decimal
    cogs: Decimal
    expenses: Decimal
    gross_profit: Decimal
    net_profit: Decimal
    profit_margin: Decimal = Field(..., description="Net profit as % of revenue")
    sales_count: int


class LowStockEntry(BaseModel):
    """Item at or below its minimum level but not empty."""

    item_name: str
    current_stock: float
    min_stock_level: float
    category: str
    price_per_unit: Decimal


class OutOfStockEntry(BaseModel):
    """Item with nothing left."""

    item_name: str
    category: str
    last_price: Decimal


class LowStockReport(BaseModel):
    """Low and out-of-stock items."""

    low_stock: list[LowStockEntry]
    out_of_stock: list[OutOfStockEntry]
    total_low_stock: int
    total_out_of_stock: int


class ProductSales(BaseModel):
    """Sales aggregate for one product over a period."""

    item_name: str
    total_quantity: float
    total_revenue: Decimal
    total_profit: Decimal
    sales_count: int


class TopSellingProducts(BaseModel):
    """Best sellers by revenue and by quantity."""

    period_days: int
    top_by_revenue: list[ProductSales]
    top_by_quantity: list[ProductSales]
    total_unique_products_sold: int


class MonthlyRevenue(BaseModel):
    """Financial summary for one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    month_name: str
    revenue: Decimal
    cogs: Decimal
    expenses: Decimal
    gross_profit: Decimal
    net_profit: Decimal
    sales_count: int
    avg_sale_value: Decimal


class ExpenseCategory(BaseModel):
    """Expense total for one category."""

    category: str
    total_amount: Decimal
    count: int
    is_sales_expense: bool


class ExpenseBreakdown(BaseModel):
    """Expenses grouped by category, largest first."""

    period_days: int
    total_expenses: Decimal
    categories: list[ExpenseCategory]
    expense_count: int


class InventoryCategory(BaseModel):
    """Stock held in one category."""

    category: str
    item_count: int
    total_units: float
    stock_value: Decimal


class InventorySummary(BaseModel):
    """Stock valuation and counts."""

    total_items: int
    total_stock_value: Decimal
    total_retail_value: Decimal
    potential_profit: Decimal
    categories: list[InventoryCategory]
    low_stock_count: int
    out_of_stock_count: int


class PendingOrderEntry(BaseModel):
    """One pending customer order."""

    model_config = ConfigDict(from_attributes=True)

    order_id: int
    customer_name: str
    customer_phone: str | None
    items_count: int
    total_amount: Decimal
    created_at: datetime.datetime | None


class PendingOrders(BaseModel):
    """Pending customer orders, newest first."""

    pending_count: int
    total_value: Decimal
    orders: list[PendingOrderEntry]


class OverviewInventory(BaseModel):
    total_items: int
    low_stock_count: int
    out_of_stock_count: int
    total_value: Decimal


class OverviewOrders(BaseModel):
    pending_count: int
    total_value: Decimal


class BusinessOverview(BaseModel):
    """Lightweight dashboard snapshot."""

    today: TodaysProfit
    inventory: OverviewInventory
    orders: OverviewOrders


class ToolInfo(BaseModel):
    """Registered tool description."""

    name: str
    description: str
    params: list[str]
    tenant_scoped: bool


class ToolListResponse(BaseModel):
    """All registered tools."""

    tools: list[ToolInfo]


class ToolRunRequest(BaseModel):
    """Parameters for running a tool over HTTP."""

    model_config = ConfigDict(extra="forbid")

    params: dict[str, Any] = Field(default_factory=dict)


class ToolRunResponse(BaseModel):
    """Result of a tool run."""

    tool_name: str
    result: Any
