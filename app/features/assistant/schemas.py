"""Pydantic schemas for the retailer assistant.

`IntentClassification` doubles as the structured output type of the intent
agent, so its field descriptions are part of the LLM prompt.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

IntentType = Literal["query", "action", "clarify"]
ActionName = Literal["create_sale", "add_inventory", "update_inventory", "add_expense"]
ReplyType = Literal[
    "query_result",
    "action_required",
    "clarification",
    "cancelled",
    "confirmation",
    "help",
]


class IntentClassification(BaseModel):
    """What the retailer wants and which tools answer it."""

    intent_type: IntentType = Field(
        "clarify", description="query for read-only questions, action for writes"
    )
    tools: list[str] = Field(
        default_factory=list, description="Business tool names to run for a query"
    )
    action: ActionName | None = Field(None, description="Write operation for an action")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Tool parameters, e.g. days, limit, month"
    )
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    needs_clarification: bool = False
    clarification_message: str | None = None


class ChatRequest(BaseModel):
    """Retailer chat message."""

    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., min_length=1, max_length=2000)
    language: str | None = Field(
        None,
        min_length=2,
        max_length=16,
        description="Reply language; defaults to the configured language",
    )


class ChatData(BaseModel):
    """Structured payload accompanying a reply."""

    type: ReplyType
    tools_used: list[str] = Field(default_factory=list)
    results: dict[str, Any] = Field(default_factory=dict)
    action: ActionName | None = None
    params: dict[str, Any] = Field(default_factory=dict)


class ChatReply(BaseModel):
    """Assistant reply."""

    success: bool
    message: str
    data: ChatData | None = None
