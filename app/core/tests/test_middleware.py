"""Tests for request correlation middleware."""

import uuid

import pytest

from app.core.logging import request_id_ctx, tenant_id_ctx


class TestRequestIdMiddleware:
    """Tests for RequestIdMiddleware."""

    @pytest.mark.asyncio
    async def test_generates_uuid_when_missing(self, client):
        """Should generate a UUID request id."""
        response = await client.get("/health")

        uuid.UUID(response.headers["X-Request-ID"])

    @pytest.mark.asyncio
    async def test_echoes_client_request_id(self, client):
        """Should keep the caller's request id."""
        response = await client.get("/tools", headers={"X-Request-ID": "chat-widget-42"})

        assert response.headers["X-Request-ID"] == "chat-widget-42"

    @pytest.mark.asyncio
    async def test_request_id_in_problem_details(self, client):
        """Should expose the request id on error responses."""
        response = await client.get(
            "/festivals/upcoming",
            params={"count": 99},
            headers={"X-Request-ID": "req-123"},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["request_id"] == "req-123"
        assert body["instance"] == "/requests/req-123"

    @pytest.mark.asyncio
    async def test_context_is_cleared_after_request(self, client):
        """Should not leak correlation ids out of the request."""
        await client.get("/health", headers={"X-Request-ID": "req-456"})

        assert request_id_ctx.get() is None
        assert tenant_id_ctx.get() is None
