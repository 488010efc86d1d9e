"""Dashboard statistics endpoint for API v1."""

from fastapi import APIRouter, Depends

from vehicle_docs_api.app.core.security import AuthenticatedUser, get_current_user
from vehicle_docs_api.app.schemas.statistics import StatsEnvelope
from vehicle_docs_api.app.services.statistics_service import StatisticsService

router = APIRouter()


@router.get("/stats", response_model=StatsEnvelope)
async def get_stats(current_user: AuthenticatedUser = Depends(get_current_user)) -> dict:
    """Vehicle and document totals plus compliance item counts by status."""
    return {"stats": await StatisticsService.compute_stats(current_user.id)}
