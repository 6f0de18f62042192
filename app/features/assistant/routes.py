"""API route for the retailer chat assistant."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.core.database import get_session_maker
from app.core.logging import bound_tenant, get_logger
from app.features.assistant.schemas import ChatReply, ChatRequest
from app.features.assistant.service import AssistantService, ToolsScope
from app.features.business_tools.service import BusinessToolsService
from app.features.retail.stores import SqlRetailStore

logger = get_logger(__name__)

router = APIRouter(prefix="/assistant", tags=["assistant"])


@lru_cache
def get_assistant_service() -> AssistantService:
    """Get the process-wide assistant service (it owns the pending store)."""
    return AssistantService()


def get_tools_scope() -> ToolsScope:
    """Open a fresh read-only session per tool run."""
    session_maker = get_session_maker()

    @asynccontextmanager
    async def scope() -> AsyncIterator[BusinessToolsService]:
        async with session_maker() as session:
            yield BusinessToolsService(SqlRetailStore(session))

    return scope


@router.post(
    "/{tenant_id}/chat",
    response_model=ChatReply,
    summary="Chat with the retailer assistant",
    description="""
Classify the message, run the matching business tools and answer from
their results.

- `yes` / `confirm` / `ok` / `proceed` confirm the pending operation.
- `no` / `cancel` drop it.
- Write requests come back as `action_required` for confirmation.
""",
)
async def chat(
    tenant_id: Annotated[int, Path(ge=1, description="Retailer id")],
    request: ChatRequest,
    service: Annotated[AssistantService, Depends(get_assistant_service)],
    tools_scope: Annotated[ToolsScope, Depends(get_tools_scope)],
) -> ChatReply:
    """Answer one retailer chat message."""
    with bound_tenant(tenant_id):
        logger.info(
            "assistant.chat_request_received",
            tenant_id=tenant_id,
            message_length=len(request.message),
            language=request.language,
        )
        return await service.handle_message(
            tools_scope,
            tenant_id,
            request.message,
            language=request.language,
        )
