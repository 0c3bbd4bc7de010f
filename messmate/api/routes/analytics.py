"""Admin dashboards."""

from fastapi import APIRouter, Depends, Query

from messmate.api import deps
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.services.analytics_service import DEFAULT_PERIOD, AnalyticsService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/overview")
def overview(
    admin: User = Depends(deps.require_admin),
    analytics_service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return SuccessResponse.create(data=analytics_service.overview())


@router.get("/sales")
def sales(
    period: str = Query(DEFAULT_PERIOD, description="7d, 30d or 90d"),
    admin: User = Depends(deps.require_admin),
    analytics_service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return SuccessResponse.create(data=analytics_service.sales(period))


@router.get("/users")
def users(
    period: str = Query(DEFAULT_PERIOD, description="7d, 30d or 90d"),
    admin: User = Depends(deps.require_admin),
    analytics_service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return SuccessResponse.create(data=analytics_service.users(period))


@router.get("/attendance")
def attendance(
    period: str = Query(DEFAULT_PERIOD, description="7d, 30d or 90d"),
    admin: User = Depends(deps.require_admin),
    analytics_service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return SuccessResponse.create(data=analytics_service.attendance(period))
