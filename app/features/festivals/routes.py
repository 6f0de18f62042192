"""API routes for festival demand forecasting.

These endpoints are thin wrappers; all computation lives in
`FestivalForecastService`.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.logging import bound_tenant, get_logger
from app.features.festivals.schemas import ForecastResult, UpcomingFestivalsResponse
from app.features.festivals.service import FestivalForecastService
from app.features.retail.stores import SqlRetailStore

logger = get_logger(__name__)

router = APIRouter(prefix="/festivals", tags=["festivals"])


def get_forecast_service() -> FestivalForecastService:
    """Get festival forecast service instance."""
    return FestivalForecastService()


@router.get(
    "/upcoming",
    response_model=UpcomingFestivalsResponse,
    summary="Festival calendar for the coming months",
)
async def get_upcoming_festivals(
    service: Annotated[FestivalForecastService, Depends(get_forecast_service)],
    count: int = Query(
        get_settings().tools_default_festival_count,
        ge=1,
        le=12,
        description="Number of months to look ahead.",
    ),
) -> UpcomingFestivalsResponse:
    """List upcoming festivals, one lookup per month, de-duplicated by name."""
    return service.upcoming(count=count)


@router.get(
    "/forecast/{tenant_id}",
    response_model=ForecastResult,
    summary="Festival demand forecast for a retailer",
    description="""
Rank the nearest festival's top-selling items against the retailer's stock
and last 30 days of sales.

- `items` is capped (10 by default) and sorted High > Medium > Low.
- `summary` counts cover every catalog item, so they can add up to more
  than `items` holds.
- `has_forecast=false` when no festival could be resolved.
""",
)
async def get_festival_forecast(
    tenant_id: Annotated[int, Path(ge=1, description="Retailer id")],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[FestivalForecastService, Depends(get_forecast_service)],
) -> ForecastResult:
    """Compute the festival demand forecast for one retailer."""
    with bound_tenant(tenant_id):
        logger.info("festivals.forecast_request_received", tenant_id=tenant_id)
        return await service.assemble(SqlRetailStore(db), tenant_id)
