"""Intent router: maps a retailer message to business tools or an action.

A small LLM call classifies the message into `IntentClassification`. When
the call fails, times out, or names no usable tool, an ordered keyword
classifier takes over, so routing never depends on the provider being up.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic_ai import Agent

from app.core.config import get_settings
from app.core.logging import get_logger
from app.features.assistant.llm import run_agent, validate_api_key_for_model
from app.features.assistant.schemas import ActionName, IntentClassification, IntentType
from app.features.business_tools.registry import TOOLS

logger = get_logger(__name__)

CLARIFICATION_MESSAGE = (
    "I can help you with sales, inventory, expenses, and business insights. "
    "What would you like to know?"
)


def _tool_catalog() -> str:
    lines = []
    for spec in TOOLS.values():
        params = f" (params: {', '.join(p.name for p in spec.params)})" if spec.params else ""
        lines.append(f"- {spec.name}: {spec.description}{params}")
    return "\n".join(lines)


INTENT_SYSTEM_PROMPT = f"""You are an intent classifier for a retail business assistant.
Decide what the retailer wants and which tools answer it.

AVAILABLE TOOLS:
{_tool_catalog()}

ACTIONS (write operations, never tools):
- create_sale: create a bill or record a sale
- add_inventory: add a new inventory item
- update_inventory: change an existing inventory item
- add_expense: record an expense

RULES:
- Questions about data are intent_type "query" and list one or more tools.
- Requests to change data are intent_type "action" with the action name.
- If the message is unclear, use intent_type "clarify", set
  needs_clarification and write a short clarification_message.
- Only use tool names from the list above.
- "festival calendar" or "which festivals" means get_upcoming_festivals;
  "what to stock for a festival" means get_festival_demand_forecast.
"""


_intent_agent: Agent[None, IntentClassification] | None = None


def create_intent_agent() -> Agent[None, IntentClassification]:
    """Create the intent classification agent.

    Raises:
        ValueError: If the provider's API key is not configured.
    """
    settings = get_settings()
    validate_api_key_for_model(settings.assistant_intent_model)
    agent: Agent[None, IntentClassification] = Agent(
        model=settings.assistant_intent_model,
        output_type=IntentClassification,
        system_prompt=INTENT_SYSTEM_PROMPT,
        model_settings={
            "temperature": settings.assistant_intent_temperature,
            "max_tokens": 300,
        },
    )
    return agent


def get_intent_agent() -> Agent[None, IntentClassification]:
    """Get or create the intent agent singleton."""
    global _intent_agent
    if _intent_agent is None:
        _intent_agent = create_intent_agent()
    return _intent_agent


# =============================================================================
# Keyword fallback
# =============================================================================


@dataclass(frozen=True)
class KeywordRule:
    """One fallback rule; the first matching rule wins."""

    pattern: re.Pattern[str]
    intent_type: IntentType
    confidence: float
    tools: tuple[str, ...] = ()
    action: ActionName | None = None

    def to_intent(self) -> IntentClassification:
        return IntentClassification(
            intent_type=self.intent_type,
            tools=list(self.tools),
            action=self.action,
            confidence=self.confidence,
        )


def _rule(
    pattern: str,
    confidence: float,
    tool: str | None = None,
    action: ActionName | None = None,
) -> KeywordRule:
    return KeywordRule(
        pattern=re.compile(pattern),
        intent_type="action" if action else "query",
        confidence=confidence,
        tools=(tool,) if tool else (),
        action=action,
    )


# Order matters: specific phrasings precede the broad ones they overlap with.
KEYWORD_RULES: tuple[KeywordRule, ...] = (
    _rule(
        r"(stock|sell|item|product|buy|demand).*festival"
        r"|festival.*(stock|sell|item|product|demand)",
        0.85,
        tool="get_festival_demand_forecast",
    ),
    _rule(
        r"festival.*calendar|which festivals|upcoming festivals|festival.*list|upcoming.*event",
        0.85,
        tool="get_upcoming_festivals",
    ),
    _rule(
        r"festival|seasonal|demand.*forecast|\bdiwali\b|\bholi\b|\beid\b",
        0.85,
        tool="get_festival_demand_forecast",
    ),
    _rule(r"add.*expense|record.*expense|spent.*money", 0.7, action="add_expense"),
    _rule(r"add.*item|add.*inventory|new.*product|add.*product", 0.7, action="add_inventory"),
    _rule(r"low stock|out of stock|restock|stock.*low", 0.85, tool="get_low_stock_items"),
    _rule(
        r"best sell|top sell|popular|most sold|top product",
        0.8,
        tool="get_top_selling_products",
    ),
    _rule(r"\bmonth", 0.75, tool="get_monthly_revenue"),
    _rule(r"profit|revenue|sales.*today|today.*sales", 0.8, tool="get_todays_profit"),
    _rule(r"expense|cost|spending|spent", 0.8, tool="get_expense_breakdown"),
    _rule(r"inventory|stock.*overview|all.*items", 0.75, tool="get_inventory_summary"),
    _rule(r"order|customer.*request|pending", 0.8, tool="get_pending_orders"),
    _rule(
        r"overview|summary|dashboard|how.*business|business.*status",
        0.85,
        tool="get_business_overview",
    ),
    _rule(r"bill|sale|sell", 0.7, action="create_sale"),
)


def fallback_intent(message: str) -> IntentClassification:
    """Classify a message with keyword rules alone."""
    text = message.lower()
    for rule in KEYWORD_RULES:
        if rule.pattern.search(text):
            return rule.to_intent()
    return IntentClassification(
        intent_type="clarify",
        confidence=0.3,
        needs_clarification=True,
        clarification_message=CLARIFICATION_MESSAGE,
    )


def normalize_tool_name(name: str) -> str:
    """Map camelCase names (getTodaysProfit) to registry names."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name.strip()).lower()


def sanitize_intent(intent: IntentClassification, message: str) -> IntentClassification:
    """Drop unregistered tool names; fall back if a query is left with none."""
    valid: list[str] = []
    dropped: list[str] = []
    for raw in intent.tools:
        name = normalize_tool_name(raw)
        if name in TOOLS:
            if name not in valid:
                valid.append(name)
        else:
            dropped.append(raw)

    if dropped:
        logger.warning("assistant.intent_tools_dropped", dropped=dropped, kept=valid)

    if intent.intent_type == "query" and not valid and not intent.needs_clarification:
        logger.info("assistant.intent_fallback_used", reason="no_valid_tools")
        return fallback_intent(message)

    if intent.needs_clarification and not intent.clarification_message:
        return intent.model_copy(
            update={"tools": valid, "clarification_message": CLARIFICATION_MESSAGE}
        )
    return intent.model_copy(update={"tools": valid})


async def classify_intent(
    message: str,
    agent: Agent[None, IntentClassification] | None = None,
) -> IntentClassification:
    """Classify a retailer message.

    Args:
        message: Raw user message.
        agent: Intent agent (defaults to the configured singleton).

    Returns:
        A classification whose tools are all registered.
    """
    try:
        intent = await run_agent(agent or get_intent_agent(), message)
    except Exception as e:
        logger.warning(
            "assistant.intent_fallback_used",
            reason="llm_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        return fallback_intent(message)

    result = sanitize_intent(intent, message)
    logger.info(
        "assistant.intent_classified",
        intent_type=result.intent_type,
        tools=result.tools,
        action=result.action,
        confidence=result.confidence,
    )
    return result
