"""Tenant-scoped retail ORM models.

Every row here belongs to exactly one retailer (the tenant). The festival
forecast and business tools only ever read these tables:
- Retailer: the tenant account
- InventoryItem: current stock, mutable by the retailer
- Sale / SaleItem: append-only bills with their line items
- Expense: operating and sales expenses
- CustomerOrder: customer requests awaiting the retailer
"""

import datetime
import enum
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.shared.models import TimestampMixin


class OrderStatus(str, enum.Enum):
    """Lifecycle of a customer order."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class Retailer(TimestampMixin, Base):
    """Retailer (tenant) account.

    Attributes:
        id: Primary key, used as the tenant id everywhere.
        shop_name: Display name of the shop.
        email: Login email.
        region: Region used for festival relevance.
    """

    __tablename__ = "retailer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    shop_name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    region: Mapped[str | None] = mapped_column(String(60), nullable=True)

    inventory: Mapped[list["InventoryItem"]] = relationship(back_populates="retailer")
    sales: Mapped[list["Sale"]] = relationship(back_populates="retailer")


class InventoryItem(TimestampMixin, Base):
    """Stock-keeping record owned by one retailer.

    Quantities are stored in the item's base unit and may be fractional
    (2.5 kg, 0.25 litre).
    """

    __tablename__ = "inventory_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    retailer_id: Mapped[int] = mapped_column(Integer, ForeignKey("retailer.id"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    stock_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), default=Decimal("0"))
    unit: Mapped[str] = mapped_column(String(10), default="piece")
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    min_stock_level: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)
    category: Mapped[str] = mapped_column(String(50), default="Other")

    retailer: Mapped["Retailer"] = relationship(back_populates="inventory")

    __table_args__ = (
        UniqueConstraint("retailer_id", "name", name="uq_inventory_item_retailer_name"),
        Index("ix_inventory_item_retailer_stock", "retailer_id", "stock_quantity"),
        CheckConstraint("stock_quantity >= 0", name="ck_inventory_item_stock_positive"),
        CheckConstraint("price_per_unit >= 0", name="ck_inventory_item_price_positive"),
        CheckConstraint("cost_per_unit >= 0", name="ck_inventory_item_cost_positive"),
    )


class Sale(TimestampMixin, Base):
    """A confirmed bill. Never mutated after creation."""

    __tablename__ = "sale"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    retailer_id: Mapped[int] = mapped_column(Integer, ForeignKey("retailer.id"), index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    total_cogs: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    retailer: Mapped["Retailer"] = relationship(back_populates="sales")
    items: Mapped[list["SaleItem"]] = relationship(
        back_populates="sale",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_sale_retailer_created", "retailer_id", "created_at"),)


class SaleItem(Base):
    """Line item of a sale."""

    __tablename__ = "sale_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sale_id: Mapped[int] = mapped_column(Integer, ForeignKey("sale.id"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3))
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    sale: Mapped["Sale"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_item_quantity_positive"),
        CheckConstraint("price_per_unit >= 0", name="ck_sale_item_price_positive"),
    )


class Expense(TimestampMixin, Base):
    """Expense recorded by a retailer."""

    __tablename__ = "expense"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    retailer_id: Mapped[int] = mapped_column(Integer, ForeignKey("retailer.id"), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_sales_expense: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("ix_expense_retailer_created", "retailer_id", "created_at"),
        CheckConstraint("amount >= 0", name="ck_expense_amount_positive"),
    )


class CustomerOrder(TimestampMixin, Base):
    """Order request placed by a customer at a retailer's shop."""

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    retailer_id: Mapped[int] = mapped_column(Integer, ForeignKey("retailer.id"), index=True)
    customer_name: Mapped[str] = mapped_column(String(120))
    customer_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value)
    items_count: Mapped[int] = mapped_column(Integer, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    responded_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("ix_customer_order_retailer_status", "retailer_id", "status"),
    )
