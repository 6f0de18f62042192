"""Read-only store interfaces over tenant data.

The forecast pipeline and business tools depend on these protocols, not on
SQLAlchemy, so they can be exercised against in-memory data. `SqlRetailStore`
is the production implementation.
"""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from typing import Any, Protocol

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.core.logging import get_logger
from app.features.retail.models import (
    CustomerOrder,
    Expense,
    InventoryItem,
    OrderStatus,
    Sale,
)

logger = get_logger(__name__)


class InventoryStore(Protocol):
    """Source of a tenant's current stock records."""

    async def list_inventory(self, tenant_id: int) -> Sequence[InventoryItem]: ...


class SalesStore(Protocol):
    """Source of a tenant's sales within a half-open time range."""

    async def list_sales(
        self,
        tenant_id: int,
        start: datetime.datetime,
        end: datetime.datetime | None = None,
    ) -> Sequence[Sale]: ...


class ExpenseStore(Protocol):
    """Source of a tenant's expenses within a time range."""

    async def list_expenses(
        self,
        tenant_id: int,
        start: datetime.datetime,
        end: datetime.datetime | None = None,
    ) -> Sequence[Expense]: ...


class OrderStore(Protocol):
    """Source of a tenant's pending customer orders."""

    async def list_pending_orders(self, tenant_id: int) -> Sequence[CustomerOrder]: ...


class ForecastStore(InventoryStore, SalesStore, Protocol):
    """Reads needed by the festival demand forecast."""


class RetailStore(ForecastStore, ExpenseStore, OrderStore, Protocol):
    """All tenant reads needed by the business tools."""


class SqlRetailStore:
    """SQLAlchemy-backed implementation of `RetailStore`.

    All queries are filtered by tenant and never write. Driver errors
    surface as `DatabaseError`.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _fetch(self, stmt: Select[Any], what: str, tenant_id: int) -> Sequence[Any]:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "retail.query_failed",
                what=what,
                tenant_id=tenant_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatabaseError(
                message=f"Could not load {what}",
                details={"tenant_id": tenant_id},
            ) from e
        return result.scalars().all()

    async def list_inventory(self, tenant_id: int) -> Sequence[InventoryItem]:
        stmt = (
            select(InventoryItem)
            .where(InventoryItem.retailer_id == tenant_id)
            .order_by(InventoryItem.id)
        )
        items = await self._fetch(stmt, "inventory", tenant_id)
        logger.debug("retail.inventory_loaded", tenant_id=tenant_id, count=len(items))
        return items

    async def list_sales(
        self,
        tenant_id: int,
        start: datetime.datetime,
        end: datetime.datetime | None = None,
    ) -> Sequence[Sale]:
        stmt = select(Sale).where(Sale.retailer_id == tenant_id, Sale.created_at >= start)
        if end is not None:
            stmt = stmt.where(Sale.created_at < end)
        sales = await self._fetch(stmt.order_by(Sale.created_at, Sale.id), "sales", tenant_id)
        logger.debug(
            "retail.sales_loaded",
            tenant_id=tenant_id,
            start=start.isoformat(),
            end=end.isoformat() if end else None,
            count=len(sales),
        )
        return sales

    async def list_expenses(
        self,
        tenant_id: int,
        start: datetime.datetime,
        end: datetime.datetime | None = None,
    ) -> Sequence[Expense]:
        stmt = select(Expense).where(Expense.retailer_id == tenant_id, Expense.created_at >= start)
        if end is not None:
            stmt = stmt.where(Expense.created_at < end)
        return await self._fetch(
            stmt.order_by(Expense.created_at, Expense.id), "expenses", tenant_id
        )

    async def list_pending_orders(self, tenant_id: int) -> Sequence[CustomerOrder]:
        stmt = (
            select(CustomerOrder)
            .where(
                CustomerOrder.retailer_id == tenant_id,
                CustomerOrder.status == OrderStatus.PENDING.value,
            )
            .order_by(CustomerOrder.created_at.desc(), CustomerOrder.id.desc())
        )
        return await self._fetch(stmt, "pending orders", tenant_id)
