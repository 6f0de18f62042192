"""Retailer chat orchestration.

Flow for one message:
1. Bare confirmation/cancellation words resolve the pending operation.
2. The intent router classifies the message.
3. Query intents run their tools concurrently, then the synthesizer writes
   the reply from the results only.
4. Action intents are parked as a pending operation and handed back to the
   caller for confirmation; the writes themselves happen elsewhere.
"""

from __future__ import annotations

import asyncio
import datetime
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from pydantic_ai import Agent

from app.core.config import get_settings
from app.core.exceptions import UnknownToolError
from app.core.logging import get_logger
from app.features.assistant.intent import CLARIFICATION_MESSAGE, classify_intent
from app.features.assistant.pending import PendingKey, PendingOperation, PendingOperationStore
from app.features.assistant.schemas import (
    ActionName,
    ChatData,
    ChatReply,
    IntentClassification,
)
from app.features.assistant.synthesizer import synthesize_response
from app.features.business_tools.registry import execute_tool
from app.features.business_tools.service import BusinessToolsService

logger = get_logger(__name__)

ToolsScope = Callable[[], AbstractAsyncContextManager[BusinessToolsService]]

CONFIRM_WORDS = frozenset({"yes", "confirm", "ok", "proceed"})
CANCEL_WORDS = frozenset({"no", "cancel"})
RETAILER_ROLE = "retailer"

ACTION_LABELS = {
    "create_sale": "create this sale",
    "add_inventory": "add this inventory item",
    "update_inventory": "update this inventory item",
    "add_expense": "record this expense",
}

NO_PENDING_MESSAGE = "No pending operation to confirm."
CANCELLED_MESSAGE = "Operation cancelled. What else can I help you with?"
HELP_MESSAGE = (
    "I can help you with:\n"
    "- Sales & Profit\n"
    "- Inventory Management\n"
    "- Expense Tracking\n"
    "- Business Analytics\n\n"
    "What would you like to know?"
)


class AssistantService:
    """Routes retailer messages to business tools and writes the replies.

    Holds the pending-operation store, so one instance should serve the
    whole process.
    """

    def __init__(
        self,
        pending: PendingOperationStore | None = None,
        intent_agent: Agent[None, IntentClassification] | None = None,
        response_agent: Agent[None, str] | None = None,
    ) -> None:
        self.settings = get_settings()
        if pending is None:
            pending = PendingOperationStore(
                ttl=datetime.timedelta(minutes=self.settings.assistant_pending_ttl_minutes)
            )
        self.pending = pending
        self.intent_agent = intent_agent
        self.response_agent = response_agent

    async def handle_message(
        self,
        tools_scope: ToolsScope,
        tenant_id: int,
        message: str,
        language: str | None = None,
    ) -> ChatReply:
        """Answer one retailer message.

        Args:
            tools_scope: Opens a `BusinessToolsService`; entered once per tool
                so concurrent tools never share a database session.
            tenant_id: Retailer id.
            message: Raw user message.
            language: Reply language (defaults to the configured one).

        Raises:
            UnknownToolError: If routing produced an unregistered tool name.
        """
        language = language or self.settings.assistant_default_language
        key: PendingKey = (tenant_id, RETAILER_ROLE)
        word = message.strip().lower()

        if word in CONFIRM_WORDS:
            return self._confirm(key)
        if word in CANCEL_WORDS:
            return self._cancel(key)

        intent = await classify_intent(message, self.intent_agent)

        if intent.needs_clarification or intent.intent_type == "clarify":
            return ChatReply(
                success=True,
                message=intent.clarification_message or CLARIFICATION_MESSAGE,
                data=ChatData(type="clarification"),
            )

        if intent.intent_type == "query" and intent.tools:
            return await self._answer_query(tools_scope, tenant_id, intent, message, language)

        if intent.intent_type == "action" and intent.action:
            return self._propose_action(key, intent.action, intent.params, message)

        return ChatReply(success=True, message=HELP_MESSAGE, data=ChatData(type="help"))

    async def run_tool(
        self,
        tools_scope: ToolsScope,
        tenant_id: int,
        tool_name: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """Run one tool, recording a failure as `{"error": message}`."""
        try:
            async with tools_scope() as tools:
                return await execute_tool(tools, tenant_id, tool_name, params)
        except UnknownToolError:
            raise
        except Exception as e:
            logger.error(
                "assistant.tool_failed",
                tool_name=tool_name,
                tenant_id=tenant_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return {"error": str(e)}

    async def _answer_query(
        self,
        tools_scope: ToolsScope,
        tenant_id: int,
        intent: IntentClassification,
        message: str,
        language: str,
    ) -> ChatReply:
        outputs = await asyncio.gather(
            *(
                self.run_tool(tools_scope, tenant_id, name, intent.params)
                for name in intent.tools
            )
        )
        results = dict(zip(intent.tools, outputs, strict=True))

        reply = await synthesize_response(message, results, language, self.response_agent)

        logger.info(
            "assistant.query_answered",
            tenant_id=tenant_id,
            tools=intent.tools,
            failed=[name for name, out in results.items() if "error" in out],
        )
        return ChatReply(
            success=True,
            message=reply,
            data=ChatData(type="query_result", tools_used=intent.tools, results=results),
        )

    def _propose_action(
        self,
        key: PendingKey,
        action: ActionName,
        params: dict[str, Any],
        message: str,
    ) -> ChatReply:
        self.pending.put(key, PendingOperation(action=action, params=params, message=message))
        label = ACTION_LABELS[action]
        logger.info("assistant.action_proposed", tenant_id=key[0], action=action)
        return ChatReply(
            success=True,
            message=f"I can {label} for you. Reply 'yes' to confirm or 'no' to cancel.",
            data=ChatData(type="action_required", action=action, params=params),
        )

    def _confirm(self, key: PendingKey) -> ChatReply:
        operation = self.pending.pop(key)
        if operation is None:
            return ChatReply(success=False, message=NO_PENDING_MESSAGE)

        logger.info("assistant.action_confirmed", tenant_id=key[0], action=operation.action)
        return ChatReply(
            success=True,
            message=f"Confirmed. I'll {ACTION_LABELS[operation.action]}.",
            data=ChatData(
                type="confirmation",
                action=operation.action,
                params=operation.params,
            ),
        )

    def _cancel(self, key: PendingKey) -> ChatReply:
        operation = self.pending.pop(key)
        if operation is not None:
            logger.info("assistant.action_cancelled", tenant_id=key[0], action=operation.action)
        return ChatReply(success=True, message=CANCELLED_MESSAGE, data=ChatData(type="cancelled"))
