"""API routes for running business tools directly.

The assistant calls the same registry in-process; these endpoints let
dashboards and scripts fetch the deterministic metrics without an LLM.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.logging import bound_tenant, get_logger
from app.features.business_tools.registry import TOOLS, execute_tool
from app.features.business_tools.schemas import (
    ToolInfo,
    ToolListResponse,
    ToolRunRequest,
    ToolRunResponse,
)
from app.features.business_tools.service import BusinessToolsService
from app.features.retail.stores import SqlRetailStore

logger = get_logger(__name__)

router = APIRouter(prefix="/tools", tags=["business-tools"])


def get_tools_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BusinessToolsService:
    """Get business tools service bound to the request's session."""
    return BusinessToolsService(SqlRetailStore(db))


@router.get(
    "",
    response_model=ToolListResponse,
    summary="List registered business tools",
)
async def list_tools() -> ToolListResponse:
    """List every tool with its accepted parameters."""
    return ToolListResponse(
        tools=[
            ToolInfo(
                name=spec.name,
                description=spec.description,
                params=[p.name for p in spec.params],
                tenant_scoped=spec.tenant_scoped,
            )
            for spec in TOOLS.values()
        ]
    )


@router.post(
    "/{tenant_id}/{tool_name}",
    response_model=ToolRunResponse,
    summary="Run a business tool for a retailer",
)
async def run_tool(
    tenant_id: Annotated[int, Path(ge=1, description="Retailer id")],
    tool_name: str,
    request: ToolRunRequest,
    service: Annotated[BusinessToolsService, Depends(get_tools_service)],
) -> ToolRunResponse:
    """Run one tool by name.

    An unregistered name in the URL is a client error (404), unlike the
    in-process registry where it signals a routing bug.
    """
    if tool_name not in TOOLS:
        raise NotFoundError(
            message=f"Tool not found: {tool_name}",
            details={"tool_name": tool_name, "available": list(TOOLS)},
        )

    with bound_tenant(tenant_id):
        logger.info(
            "business_tools.run_request_received",
            tenant_id=tenant_id,
            tool_name=tool_name,
        )
        try:
            result: Any = await execute_tool(service, tenant_id, tool_name, request.params)
        except ValueError as e:
            raise BadRequestError(message=str(e), details={"tool_name": tool_name}) from e

    return ToolRunResponse(tool_name=tool_name, result=result)
