"""
Status routes - Health check, dashboard counters and recent activity.

Public endpoints (no auth).
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mdrg.config import settings
from mdrg.db.session import get_db
from mdrg.models.api import ActivityItem, ApiResponse, DashboardStats, HealthData, ListResponse
from mdrg.services.activity import ActivityService
from mdrg.services.dashboard import DashboardService

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/health", response_model=ApiResponse[HealthData])
async def health() -> ApiResponse[HealthData]:
    """Liveness check."""
    return ApiResponse(
        message=f"{settings.api_title} is running.",
        data=HealthData(
            timestamp=datetime.now(UTC).isoformat(),
            version=settings.api_version,
        ),
    )


@router.get("/dashboard/stats", response_model=ApiResponse[DashboardStats])
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[DashboardStats]:
    """Global client, case and collection counters."""
    return ApiResponse(data=await DashboardService(db).stats())


@router.get("/activity/recent", response_model=ListResponse[ActivityItem])
async def recent_activity(
    db: AsyncSession = Depends(get_db),
) -> ListResponse[ActivityItem]:
    """The 50 most recent activity entries."""
    items = await ActivityService(db).recent()
    return ListResponse(count=len(items), data=items)
