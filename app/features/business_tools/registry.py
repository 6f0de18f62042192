"""Name-based registry of business tools.

The intent router picks tools by their snake_case name; `execute_tool`
resolves the name, coerces the accepted parameters and runs the coroutine.
An unknown name is a routing bug and raises `UnknownToolError`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from app.core.exceptions import BadRequestError, UnknownToolError
from app.core.logging import get_logger
from app.features.business_tools.service import BusinessToolsService

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToolParam:
    """Optional parameter accepted by a tool."""

    name: str
    kind: type[int] | type[float]
    description: str


@dataclass(frozen=True)
class ToolSpec:
    """Registered tool.

    Attributes:
        name: Public snake_case tool name.
        method: Name of the `BusinessToolsService` coroutine.
        description: One-line description, also shown to the intent LLM.
        params: Optional parameters, all keyword-only.
        tenant_scoped: Whether the coroutine takes the tenant id.
    """

    name: str
    method: str
    description: str
    params: tuple[ToolParam, ...] = field(default_factory=tuple)
    tenant_scoped: bool = True


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            name="get_todays_profit",
            method="get_todays_profit",
            description="Today's revenue, expenses and profit",
        ),
        ToolSpec(
            name="get_low_stock_items",
            method="get_low_stock_items",
            description="Items running low on stock or out of stock",
            params=(ToolParam("threshold", float, "Override each item's minimum level"),),
        ),
        ToolSpec(
            name="get_top_selling_products",
            method="get_top_selling_products",
            description="Best-selling products by revenue and quantity",
            params=(
                ToolParam("limit", int, "How many products to list"),
                ToolParam("days", int, "Look-back window in days"),
            ),
        ),
        ToolSpec(
            name="get_monthly_revenue",
            method="get_monthly_revenue",
            description="Monthly financial summary",
            params=(
                ToolParam("year", int, "Calendar year"),
                ToolParam("month", int, "Month number, 1-12"),
            ),
        ),
        ToolSpec(
            name="get_expense_breakdown",
            method="get_expense_breakdown",
            description="Expense analysis by category",
            params=(ToolParam("days", int, "Look-back window in days"),),
        ),
        ToolSpec(
            name="get_inventory_summary",
            method="get_inventory_summary",
            description="Inventory overview and stock valuation",
        ),
        ToolSpec(
            name="get_pending_orders",
            method="get_pending_orders",
            description="Pending customer orders",
        ),
        ToolSpec(
            name="get_business_overview",
            method="get_business_overview",
            description="Quick business snapshot",
        ),
        ToolSpec(
            name="get_festival_demand_forecast",
            method="get_festival_demand_forecast",
            description="What to stock for the nearest festival",
        ),
        ToolSpec(
            name="get_upcoming_festivals",
            method="get_upcoming_festivals",
            description="Upcoming festival calendar",
            params=(ToolParam("count", int, "Number of months to look ahead"),),
            tenant_scoped=False,
        ),
    )
}


def tool_names() -> list[str]:
    """Registered tool names, in registration order."""
    return list(TOOLS)


def get_tool(name: str) -> ToolSpec:
    """Look up a tool by name.

    Raises:
        UnknownToolError: If no tool has this name.
    """
    try:
        return TOOLS[name]
    except KeyError:
        raise UnknownToolError(name, available=tool_names()) from None


def coerce_params(spec: ToolSpec, params: dict[str, Any] | None) -> dict[str, Any]:
    """Keep the parameters the tool accepts, cast to their declared type.

    Unknown keys and None values are dropped so the tool uses its defaults.

    Raises:
        BadRequestError: If a value cannot be cast.
    """
    accepted: dict[str, Any] = {}
    if not params:
        return accepted

    for param in spec.params:
        value = params.get(param.name)
        if value is None or value == "":
            continue
        try:
            accepted[param.name] = param.kind(value)
        except (TypeError, ValueError) as e:
            raise BadRequestError(
                message=f"Invalid value for '{param.name}' of tool '{spec.name}'",
                details={"param": param.name, "value": str(value), "error": str(e)},
            ) from e

    ignored = sorted(set(params) - {p.name for p in spec.params})
    if ignored:
        logger.debug("business_tools.params_ignored", tool_name=spec.name, ignored=ignored)
    return accepted


def to_payload(result: Any) -> Any:
    """JSON-ready form of a tool result."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    return result


async def execute_tool(
    service: BusinessToolsService,
    tenant_id: int,
    name: str,
    params: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Run a registered tool and return its JSON-ready result.

    Args:
        service: Business tools bound to a data store.
        tenant_id: Retailer id (ignored by tools that are not tenant-scoped).
        name: Registered tool name.
        params: Raw parameters, e.g. from the intent classifier.

    Returns:
        The tool result as a JSON-compatible dict.

    Raises:
        UnknownToolError: If the tool is not registered.
        BadRequestError: If a parameter has the wrong type.
    """
    spec = get_tool(name)
    kwargs = coerce_params(spec, params)
    method = getattr(service, spec.method)

    start = time.perf_counter()
    if spec.tenant_scoped:
        result = await method(tenant_id, **kwargs)
    else:
        result = await method(**kwargs)
    duration_ms = (time.perf_counter() - start) * 1000

    logger.info(
        "business_tools.tool_executed",
        tool_name=name,
        tenant_id=tenant_id,
        params=kwargs,
        duration_ms=round(duration_ms, 2),
    )
    payload: dict[str, Any] = to_payload(result)
    return payload
