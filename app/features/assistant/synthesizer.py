"""Response synthesizer: turns tool results into a reply.

The LLM only ever receives the structured tool results, never raw inventory
or sales rows. If it fails, `format_tool_results` renders the same data as
plain text, carrying every item name, confidence, stock and action.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from pydantic_ai import Agent

from app.core.config import get_settings
from app.core.logging import get_logger
from app.features.assistant.llm import run_agent, validate_api_key_for_model

logger = get_logger(__name__)

RESPONSE_SYSTEM_PROMPT = """You are a business assistant for a small retailer.
You receive the user's question and data already computed by business tools.

RULES:
- Answer only from the data provided; never invent numbers.
- Be concise and actionable; highlight the important numbers.
- Suggest a next step when it helps.
- Use line breaks for readability.
- Reply in the language requested.
"""

_response_agent: Agent[None, str] | None = None


def create_response_agent() -> Agent[None, str]:
    """Create the response synthesis agent.

    Raises:
        ValueError: If the provider's API key is not configured.
    """
    settings = get_settings()
    validate_api_key_for_model(settings.assistant_response_model)
    agent: Agent[None, str] = Agent(
        model=settings.assistant_response_model,
        output_type=str,
        system_prompt=RESPONSE_SYSTEM_PROMPT,
        model_settings={
            "temperature": settings.assistant_response_temperature,
            "max_tokens": settings.assistant_response_max_tokens,
        },
    )
    return agent


def get_response_agent() -> Agent[None, str]:
    """Get or create the response agent singleton."""
    global _response_agent
    if _response_agent is None:
        _response_agent = create_response_agent()
    return _response_agent


def build_prompt(message: str, results: Mapping[str, Any], language: str) -> str:
    """User prompt carrying the question and the tool results as JSON."""
    payload = json.dumps(results, indent=2, default=str, ensure_ascii=False)
    return (
        f'The user asked: "{message}"\n\n'
        f"Data retrieved:\n{payload}\n\n"
        f"Reply in language: {language}"
    )


# =============================================================================
# Deterministic formatter
# =============================================================================


def _qty(value: Any) -> str:
    return f"{float(value):g}"


def _todays_profit(data: dict[str, Any]) -> list[str]:
    return [
        "Today's Profit:",
        f"  Revenue: ₹{data['revenue']}",
        f"  Expenses: ₹{data['expenses']}",
        f"  Net Profit: ₹{data['net_profit']}",
        f"  Margin: {data['profit_margin']}%",
    ]


def _low_stock(data: dict[str, Any]) -> list[str]:
    lines = [
        "Stock Status:",
        f"  Low Stock: {data['total_low_stock']} items",
        f"  Out of Stock: {data['total_out_of_stock']} items",
    ]
    for item in data["low_stock"]:
        lines.append(
            f"  - {item['item_name']}: {_qty(item['current_stock'])} left "
            f"(min {_qty(item['min_stock_level'])})"
        )
    for item in data["out_of_stock"]:
        lines.append(f"  - {item['item_name']}: out of stock")
    return lines


def _top_sellers(data: dict[str, Any]) -> list[str]:
    lines = [f"Top Sellers (last {data['period_days']} days):"]
    for idx, item in enumerate(data["top_by_revenue"][:5], start=1):
        lines.append(
            f"  {idx}. {item['item_name']}: ₹{item['total_revenue']} "
            f"({_qty(item['total_quantity'])} units)"
        )
    if not data["top_by_revenue"]:
        lines.append("  No sales in this period")
    return lines


def _monthly_revenue(data: dict[str, Any]) -> list[str]:
    return [
        f"{data['month_name']} {data['year']}:",
        f"  Revenue: ₹{data['revenue']}",
        f"  Expenses: ₹{data['expenses']}",
        f"  Net Profit: ₹{data['net_profit']}",
        f"  Sales: {data['sales_count']} (avg ₹{data['avg_sale_value']})",
    ]


def _expenses(data: dict[str, Any]) -> list[str]:
    lines = [f"Expenses (last {data['period_days']} days): ₹{data['total_expenses']}"]
    for category in data["categories"]:
        lines.append(f"  - {category['category']}: ₹{category['total_amount']}")
    return lines


def _inventory(data: dict[str, Any]) -> list[str]:
    return [
        "Inventory Summary:",
        f"  Items: {data['total_items']}",
        f"  Stock Value: ₹{data['total_stock_value']}",
        f"  Retail Value: ₹{data['total_retail_value']}",
        f"  Low Stock: {data['low_stock_count']}, Out of Stock: {data['out_of_stock_count']}",
    ]


def _pending_orders(data: dict[str, Any]) -> list[str]:
    lines = [f"Pending Orders: {data['pending_count']} (₹{data['total_value']})"]
    for order in data["orders"]:
        lines.append(f"  - #{order['order_id']} {order['customer_name']}: ₹{order['total_amount']}")
    return lines


def _overview(data: dict[str, Any]) -> list[str]:
    today = data["today"]
    inventory = data["inventory"]
    orders = data["orders"]
    return [
        "Business Overview:",
        f"  Today's Revenue: ₹{today['revenue']}, Net Profit: ₹{today['net_profit']}",
        f"  Inventory: {inventory['total_items']} items, "
        f"{inventory['low_stock_count']} low, {inventory['out_of_stock_count']} out",
        f"  Pending Orders: {orders['pending_count']} (₹{orders['total_value']})",
    ]


def _festival_forecast(data: dict[str, Any]) -> list[str]:
    if not data["has_forecast"]:
        return [data.get("message") or "No upcoming festivals found"]

    lines = [
        f"Festival Forecast: {data['festival_name']}",
        f"  Timing: {data['months_away']} month(s) away",
        f"  Demand Level: {data['demand_level']}",
        "Recommended Items:",
    ]
    for idx, item in enumerate(data["items"], start=1):
        lines.append(
            f"  {idx}. {item['item_name']} ({item['confidence']}) - "
            f"stock {_qty(item['current_stock'])}, {item['recommended_action']}"
        )
        if item["reasoning"]:
            lines.append(f"     {'; '.join(item['reasoning'])}")
    return lines


def _upcoming_festivals(data: dict[str, Any]) -> list[str]:
    lines = ["Upcoming Festivals:"]
    for idx, festival in enumerate(data["festivals"], start=1):
        lines.append(
            f"  {idx}. {festival['festival_name']} ({festival['month']}, "
            f"{festival['demand_level']} demand)"
        )
    return lines


FORMATTERS: dict[str, Callable[[dict[str, Any]], list[str]]] = {
    "get_todays_profit": _todays_profit,
    "get_low_stock_items": _low_stock,
    "get_top_selling_products": _top_sellers,
    "get_monthly_revenue": _monthly_revenue,
    "get_expense_breakdown": _expenses,
    "get_inventory_summary": _inventory,
    "get_pending_orders": _pending_orders,
    "get_business_overview": _overview,
    "get_festival_demand_forecast": _festival_forecast,
    "get_upcoming_festivals": _upcoming_festivals,
}


def format_tool_results(results: Mapping[str, Any]) -> str:
    """Render tool results as plain text without an LLM."""
    sections = ["Here's what I found:"]
    for tool_name, data in results.items():
        if isinstance(data, dict) and "error" in data:
            sections.append(f"{tool_name}: Error - {data['error']}")
            continue
        formatter = FORMATTERS.get(tool_name)
        if formatter is None:
            sections.append(f"{tool_name}: Data retrieved")
            continue
        sections.append("\n".join(formatter(data)))
    return "\n\n".join(sections)


async def synthesize_response(
    message: str,
    results: Mapping[str, Any],
    language: str,
    agent: Agent[None, str] | None = None,
) -> str:
    """Write the reply for a query, falling back to the plain formatter.

    Args:
        message: The user's original message.
        results: JSON-ready tool results keyed by tool name.
        language: Reply language.
        agent: Response agent (defaults to the configured singleton).
    """
    try:
        text = await run_agent(agent or get_response_agent(), build_prompt(message, results, language))
        text = text.strip()
        if not text:
            raise ValueError("Empty response from model")
    except Exception as e:
        logger.warning(
            "assistant.synthesizer_fallback_used",
            tools=list(results),
            error=str(e),
            error_type=type(e).__name__,
        )
        return format_tool_results(results)
    return text
