"""Sales velocity: units sold per day over a trailing window."""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass

from app.core.logging import get_logger
from app.features.retail.models import Sale
from app.features.retail.stores import SalesStore

logger = get_logger(__name__)


@dataclass
class VelocityStat:
    """Per-item aggregate over the window. Keyed by lowercase item name."""

    total_quantity: float = 0.0
    total_revenue: float = 0.0
    sales_count: int = 0
    velocity_score: float = 0.0


def compute_velocity(sales: Iterable[Sale], window_days: int) -> dict[str, VelocityStat]:
    """Aggregate sale line items into per-item velocity stats.

    `sales_count` counts line items, so one bill listing an item twice
    counts twice. `velocity_score` is `total_quantity / window_days`.

    Args:
        sales: Sales already restricted to the window.
        window_days: Length of the window in days.

    Returns:
        Mapping of lowercase item name to stats; empty when there are no sales.
    """
    if window_days <= 0:
        raise ValueError(f"window_days must be positive, got {window_days}")

    stats: dict[str, VelocityStat] = {}
    for sale in sales:
        for line in sale.items:
            stat = stats.setdefault(line.name.lower(), VelocityStat())
            quantity = float(line.quantity)
            stat.total_quantity += quantity
            stat.total_revenue += quantity * float(line.price_per_unit)
            stat.sales_count += 1

    for stat in stats.values():
        stat.velocity_score = stat.total_quantity / window_days

    return stats


async def fetch_velocity(
    store: SalesStore,
    tenant_id: int,
    window_days: int,
    now: datetime.datetime | None = None,
) -> dict[str, VelocityStat]:
    """Load the tenant's sales created since `now - window_days` and aggregate them."""
    now = now or datetime.datetime.now(datetime.UTC)
    start = now - datetime.timedelta(days=window_days)
    sales = await store.list_sales(tenant_id, start, None)
    stats = compute_velocity(sales, window_days)

    logger.debug(
        "festivals.velocity_computed",
        tenant_id=tenant_id,
        window_days=window_days,
        sales=len(sales),
        items=len(stats),
    )
    return stats
