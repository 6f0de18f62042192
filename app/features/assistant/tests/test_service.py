"""Tests for the assistant service."""

import pytest

from app.core.exceptions import UnknownToolError
from app.features.assistant.intent import CLARIFICATION_MESSAGE
from app.features.assistant.schemas import IntentClassification
from app.features.assistant.service import (
    CANCELLED_MESSAGE,
    HELP_MESSAGE,
    NO_PENDING_MESSAGE,
    AssistantService,
)


class TestQueries:
    """Tests for read-only questions."""

    @pytest.mark.asyncio
    async def test_runs_tool_and_formats_reply(
        self, assistant, tools_scope, retail_store
    ):
        """Should run the routed tool and fall back to the plain formatter."""
        retail_store.add_item("Rice", stock=2)

        reply = await assistant.handle_message(tools_scope, 1, "Show low stock items")

        assert reply.success is True
        assert reply.data.type == "query_result"
        assert reply.data.tools_used == ["get_low_stock_items"]
        assert reply.data.results["get_low_stock_items"]["total_low_stock"] == 1
        assert "Stock Status:" in reply.message
        assert "Rice: 2 left" in reply.message

    @pytest.mark.asyncio
    async def test_each_tool_gets_its_own_scope(
        self, failing_agent, agent_factory, tools_scope, scope_log
    ):
        """Should open one tools scope per tool run."""
        intent = IntentClassification(
            intent_type="query",
            tools=["get_todays_profit", "get_pending_orders", "get_inventory_summary"],
        )
        service = AssistantService(
            intent_agent=agent_factory(intent), response_agent=failing_agent
        )

        reply = await service.handle_message(tools_scope, 1, "overview please")

        assert len(scope_log) == 3
        assert list(reply.data.results) == intent.tools

    @pytest.mark.asyncio
    async def test_failed_tool_is_reported_not_raised(self, assistant, tools_scope, retail_store):
        """Should record a failing tool as an error entry."""

        async def broken(tenant_id):
            raise RuntimeError("database is down")

        retail_store.list_pending_orders = broken

        reply = await assistant.handle_message(tools_scope, 1, "Any pending orders?")

        assert reply.success is True
        assert reply.data.results == {"get_pending_orders": {"error": "database is down"}}
        assert "get_pending_orders: Error - database is down" in reply.message

    @pytest.mark.asyncio
    async def test_uses_llm_reply_when_available(self, agent_factory, tools_scope):
        """Should return the synthesizer's text."""
        intent = IntentClassification(intent_type="query", tools=["get_upcoming_festivals"])
        service = AssistantService(
            intent_agent=agent_factory(intent),
            response_agent=agent_factory("Lights Fest is next month."),
        )

        reply = await service.handle_message(tools_scope, 1, "what's coming up?", language="hi")

        assert reply.message == "Lights Fest is next month."
        assert reply.data.results["get_upcoming_festivals"]["count"] == 1

    @pytest.mark.asyncio
    async def test_unknown_tool_propagates(self, assistant, tools_scope):
        """Should raise instead of recording an unregistered tool."""
        with pytest.raises(UnknownToolError):
            await assistant.run_tool(tools_scope, 1, "get_weather", {})


class TestClarificationAndHelp:
    """Tests for unclear messages."""

    @pytest.mark.asyncio
    async def test_unclear_message_asks_for_clarification(self, assistant, tools_scope, scope_log):
        """Should ask what the retailer wants without running tools."""
        reply = await assistant.handle_message(tools_scope, 1, "hello there")

        assert reply.data.type == "clarification"
        assert reply.message == CLARIFICATION_MESSAGE
        assert scope_log == []

    @pytest.mark.asyncio
    async def test_action_without_name_gets_help(self, agent_factory, tools_scope):
        """Should fall through to the help text."""
        intent = IntentClassification(intent_type="action", action=None)
        service = AssistantService(intent_agent=agent_factory(intent))

        reply = await service.handle_message(tools_scope, 1, "do the thing")

        assert reply.data.type == "help"
        assert reply.message == HELP_MESSAGE


class TestActions:
    """Tests for proposing, confirming and cancelling writes."""

    @pytest.mark.asyncio
    async def test_action_requires_confirmation(self, assistant, tools_scope, scope_log):
        """Should park the action and ask for a yes or no."""
        reply = await assistant.handle_message(tools_scope, 1, "Add expense of 500 for rent")

        assert reply.data.type == "action_required"
        assert reply.data.action == "add_expense"
        assert "Reply 'yes' to confirm or 'no' to cancel." in reply.message
        assert assistant.pending.get((1, "retailer")) is not None
        assert scope_log == []

    @pytest.mark.asyncio
    async def test_confirm_returns_pending_operation(self, agent_factory, tools_scope):
        """Should hand back the parked action and its params once."""
        intent = IntentClassification(
            intent_type="action", action="create_sale", params={"items": [{"name": "Rice"}]}
        )
        service = AssistantService(intent_agent=agent_factory(intent))
        await service.handle_message(tools_scope, 1, "bill 2 kg rice")

        reply = await service.handle_message(tools_scope, 1, "  YES ")

        assert reply.success is True
        assert reply.data.type == "confirmation"
        assert reply.data.action == "create_sale"
        assert reply.data.params == {"items": [{"name": "Rice"}]}
        assert reply.message == "Confirmed. I'll create this sale."

        again = await service.handle_message(tools_scope, 1, "yes")
        assert again.success is False
        assert again.message == NO_PENDING_MESSAGE

    @pytest.mark.asyncio
    async def test_confirm_without_pending(self, assistant, tools_scope):
        """Should report that there is nothing to confirm."""
        reply = await assistant.handle_message(tools_scope, 1, "ok")

        assert reply.success is False
        assert reply.message == NO_PENDING_MESSAGE
        assert reply.data is None

    @pytest.mark.asyncio
    async def test_cancel_drops_pending(self, assistant, tools_scope):
        """Should drop the parked action."""
        await assistant.handle_message(tools_scope, 1, "Add 5 kg rice to inventory")

        reply = await assistant.handle_message(tools_scope, 1, "cancel")

        assert reply.success is True
        assert reply.data.type == "cancelled"
        assert reply.message == CANCELLED_MESSAGE
        assert assistant.pending.get((1, "retailer")) is None

    @pytest.mark.asyncio
    async def test_cancel_without_pending_still_succeeds(self, assistant, tools_scope):
        """Should acknowledge a cancel even with nothing pending."""
        reply = await assistant.handle_message(tools_scope, 1, "no")

        assert reply.data.type == "cancelled"

    @pytest.mark.asyncio
    async def test_pending_operations_are_per_tenant(self, assistant, tools_scope):
        """Should not let another tenant confirm the action."""
        await assistant.handle_message(tools_scope, 1, "Add expense of 500 for rent")

        reply = await assistant.handle_message(tools_scope, 2, "yes")

        assert reply.success is False
        assert assistant.pending.get((1, "retailer")) is not None
