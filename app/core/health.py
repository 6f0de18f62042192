"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging import get_logger
from app.features.festivals.catalog import get_festival_catalog

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None
    festival_catalog_size: int | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        Health status response.
    """
    logger.debug("health.check_started")
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check including database connectivity and the festival catalog.

    An empty catalog leaves forecasts unavailable but the service up, so it
    reports "degraded" rather than "unhealthy".

    Args:
        db: Database session dependency.

    Returns:
        Health status with database state and catalog size.
    """
    logger.debug("health.readiness_check_started")
    catalog_size = len(get_festival_catalog())

    try:
        await db.execute(text("SELECT 1"))
        logger.info("health.database_connected")
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return HealthResponse(
            status="unhealthy",
            database="disconnected",
            festival_catalog_size=catalog_size,
        )

    return HealthResponse(
        status="ok" if catalog_size else "degraded",
        database="connected",
        festival_catalog_size=catalog_size,
    )
