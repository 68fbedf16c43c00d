"""Owner dashboard endpoints."""

from fastapi import APIRouter, Depends

from ..core.dependencies import get_dashboard_service
from ..core.logging import ContextLogger
from ..schemas.dashboard import DashboardStats
from ..services.dashboard import DashboardService

logger = ContextLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    responses={500: {"description": "Internal server error"}},
)


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Directory statistics",
    description="Totals of users and follow edges plus the last seven days",
)
async def get_dashboard_stats(
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStats:
    async with logger.track_time("get_dashboard_stats"):
        return await service.get_stats()
