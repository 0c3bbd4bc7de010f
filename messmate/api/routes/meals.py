"""
Meal history endpoints for the signed-in student.
"""

from fastapi import APIRouter, Depends, Query

from messmate.api import deps
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.meal import MealHistoryEntry, MealHistoryResponse
from messmate.services.meal_history_service import HistoryRange, MealHistoryService

router = APIRouter(prefix="/meals", tags=["Meals"])


@router.get("/history")
def meal_history(
    history_range: HistoryRange = Query(HistoryRange.MONTH, alias="range"),
    current_user: User = Depends(deps.get_current_user),
    history_service: MealHistoryService = Depends(deps.get_meal_history_service),
):
    history = history_service.history(current_user, history_range)
    return SuccessResponse.create(data=MealHistoryResponse.model_validate(history))


@router.get("/recent")
def recent_meals(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(deps.get_current_user),
    history_service: MealHistoryService = Depends(deps.get_meal_history_service),
):
    meals = history_service.recent(current_user, limit)
    return SuccessResponse.create(data=[MealHistoryEntry.model_validate(m) for m in meals])


@router.get("/last-completed")
def last_completed_meal(
    current_user: User = Depends(deps.get_current_user),
    history_service: MealHistoryService = Depends(deps.get_meal_history_service),
):
    meal = history_service.last_completed(current_user)
    return SuccessResponse.create(data=MealHistoryEntry.model_validate(meal))
