"""Tests for the assistant chat route."""

import pytest

from app.features.assistant.routes import get_assistant_service, get_tools_scope
from app.main import app


@pytest.fixture
def chat_overrides(assistant, tools_scope):
    """Serve chat with the offline assistant over the in-memory store."""
    app.dependency_overrides[get_assistant_service] = lambda: assistant
    app.dependency_overrides[get_tools_scope] = lambda: tools_scope
    return assistant


class TestChatRoute:
    """Tests for POST /assistant/{tenant_id}/chat."""

    @pytest.mark.asyncio
    async def test_answers_query(self, client, chat_overrides, retail_store):
        """Should answer a stock question from tool results."""
        retail_store.add_item("Oil", stock=0)

        response = await client.post("/assistant/1/chat", json={"message": "What is out of stock?"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["type"] == "query_result"
        assert data["data"]["results"]["get_low_stock_items"]["total_out_of_stock"] == 1
        assert "Oil: out of stock" in data["message"]

    @pytest.mark.asyncio
    async def test_action_then_confirm(self, client, chat_overrides):
        """Should keep the pending operation between requests."""
        first = await client.post(
            "/assistant/1/chat", json={"message": "Add 5 kg rice to inventory"}
        )
        second = await client.post("/assistant/1/chat", json={"message": "yes"})

        assert first.json()["data"]["type"] == "action_required"
        assert second.json()["data"]["type"] == "confirmation"
        assert second.json()["data"]["action"] == "add_inventory"

    @pytest.mark.asyncio
    async def test_rejects_empty_message(self, client, chat_overrides):
        """Should reject an empty message."""
        response = await client.post("/assistant/1/chat", json={"message": ""})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rejects_unknown_fields(self, client, chat_overrides):
        """Should reject fields other than message and language."""
        response = await client.post(
            "/assistant/1/chat", json={"message": "hi", "tenant_id": 2}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rejects_invalid_tenant(self, client, chat_overrides):
        """Should reject a non-positive tenant id."""
        response = await client.post("/assistant/0/chat", json={"message": "profit?"})

        assert response.status_code == 422
