"""
Attendance summary, derived from which booked meals were actually served.
"""

from fastapi import APIRouter, Depends

from messmate.api import deps
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.meal import AttendanceSummary
from messmate.services.meal_history_service import MealHistoryService

router = APIRouter(tags=["Attendance"])


@router.get("/attendance")
@router.get("/user/attendance")
def my_attendance(
    current_user: User = Depends(deps.get_current_user),
    history_service: MealHistoryService = Depends(deps.get_meal_history_service),
):
    summary = history_service.attendance(current_user)
    return SuccessResponse.create(data=AttendanceSummary.model_validate(summary))
