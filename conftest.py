"""Shared pytest fixtures for Biznova tests."""

import datetime
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.features.retail.models import (
    CustomerOrder,
    Expense,
    InventoryItem,
    OrderStatus,
    Sale,
    SaleItem,
)
from app.main import app


class InMemoryRetailStore:
    """In-memory tenant data implementing every store protocol."""

    def __init__(self, tenant_id: int = 1) -> None:
        self.tenant_id = tenant_id
        self.inventory: list[InventoryItem] = []
        self.sales: list[Sale] = []
        self.expenses: list[Expense] = []
        self.orders: list[CustomerOrder] = []
        self.sales_queries: list[tuple[datetime.datetime, datetime.datetime | None]] = []

    def add_item(
        self,
        name,
        stock=0,
        price="10.00",
        cost="6.00",
        min_stock_level=None,
        category="Other",
    ) -> InventoryItem:
        item = InventoryItem(
            id=len(self.inventory) + 1,
            retailer_id=self.tenant_id,
            name=name,
            stock_quantity=Decimal(str(stock)),
            unit="piece",
            price_per_unit=Decimal(price),
            cost_per_unit=Decimal(cost),
            min_stock_level=Decimal(str(min_stock_level)) if min_stock_level is not None else None,
            category=category,
        )
        self.inventory.append(item)
        return item

    def add_sale(self, created_at, *lines) -> Sale:
        """Add a sale; each line is (name, quantity, price, cost)."""
        items = [
            SaleItem(
                name=name,
                quantity=Decimal(str(quantity)),
                price_per_unit=Decimal(str(price)),
                cost_per_unit=Decimal(str(cost)),
            )
            for name, quantity, price, cost in lines
        ]
        total = sum((i.quantity * i.price_per_unit for i in items), Decimal("0"))
        cogs = sum((i.quantity * i.cost_per_unit for i in items), Decimal("0"))
        sale = Sale(
            id=len(self.sales) + 1,
            retailer_id=self.tenant_id,
            total_amount=total,
            total_cogs=cogs,
            created_at=created_at,
            items=items,
        )
        self.sales.append(sale)
        return sale

    def add_expense(self, created_at, amount, category="Rent", is_sales_expense=False) -> Expense:
        expense = Expense(
            id=len(self.expenses) + 1,
            retailer_id=self.tenant_id,
            amount=Decimal(str(amount)),
            category=category,
            is_sales_expense=is_sales_expense,
            created_at=created_at,
        )
        self.expenses.append(expense)
        return expense

    def add_order(
        self,
        created_at,
        customer_name,
        total,
        status=OrderStatus.PENDING,
        items_count=1,
    ) -> CustomerOrder:
        order = CustomerOrder(
            id=len(self.orders) + 1,
            retailer_id=self.tenant_id,
            customer_name=customer_name,
            customer_phone="9000000000",
            status=status.value,
            items_count=items_count,
            total_amount=Decimal(str(total)),
            created_at=created_at,
        )
        self.orders.append(order)
        return order

    async def list_inventory(self, tenant_id):
        return [i for i in self.inventory if i.retailer_id == tenant_id]

    async def list_sales(self, tenant_id, start, end=None):
        self.sales_queries.append((start, end))
        return [
            s
            for s in self.sales
            if s.retailer_id == tenant_id
            and s.created_at >= start
            and (end is None or s.created_at < end)
        ]

    async def list_expenses(self, tenant_id, start, end=None):
        return [
            e
            for e in self.expenses
            if e.retailer_id == tenant_id
            and e.created_at >= start
            and (end is None or e.created_at < end)
        ]

    async def list_pending_orders(self, tenant_id):
        pending = [
            o
            for o in self.orders
            if o.retailer_id == tenant_id and o.status == OrderStatus.PENDING.value
        ]
        return sorted(pending, key=lambda o: (o.created_at, o.id), reverse=True)


@pytest.fixture
def retail_store():
    """Empty in-memory store for tenant 1."""
    return InMemoryRetailStore(tenant_id=1)


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def sqlite_session():
    """Create an async session over a fresh in-memory SQLite database.

    All tables are created up front; nothing outlives the test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()

