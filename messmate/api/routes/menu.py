"""Daily menu endpoints. Reads are public; changes are admin-only."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.base import utcnow
from messmate.models.enums import MealType
from messmate.models.user import User
from messmate.realtime import events
from messmate.realtime.notifier import RealtimeNotifier
from messmate.schemas.common import SuccessResponse
from messmate.schemas.menu import (
    AvailabilityUpdate,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    TodayMenuResponse,
)
from messmate.services.menu_service import MenuService

router = APIRouter(prefix="/menu", tags=["Menu"])


def _announce(background_tasks: BackgroundTasks, notifier: RealtimeNotifier, action: str, payload) -> None:
    background_tasks.add_task(notifier.to_all, events.MENU_UPDATE, {"action": action, "menu": payload})


@router.get("/")
def list_menu(
    on_date: Optional[date] = Query(None, alias="date"),
    meal_type: Optional[MealType] = Query(None),
    category: Optional[str] = Query(None),
    available: Optional[bool] = Query(None),
    params: PaginationParams = Depends(deps.get_pagination),
    menu_service: MenuService = Depends(deps.get_menu_service),
):
    items, total = menu_service.list(params, on_date, meal_type, category, available)
    return SuccessResponse.create(
        data=[MenuItemResponse.model_validate(i) for i in items],
        pagination=pagination_meta(params, total),
    )


@router.get("/today")
def today_menu(menu_service: MenuService = Depends(deps.get_menu_service)):
    grouped = menu_service.today()
    data = TodayMenuResponse(
        date=utcnow().date(),
        **{
            meal: [MenuItemResponse.model_validate(i) for i in items]
            for meal, items in grouped.items()
        },
    )
    return SuccessResponse.create(data=data)


@router.get("/{menu_item_id}")
def get_menu_item(menu_item_id: str, menu_service: MenuService = Depends(deps.get_menu_service)):
    return SuccessResponse.create(data=MenuItemResponse.model_validate(menu_service.get(menu_item_id)))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_menu_item(
    payload: MenuItemCreate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    menu_service: MenuService = Depends(deps.get_menu_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item = menu_service.create(payload.model_dump())
    data = MenuItemResponse.model_validate(item)
    _announce(background_tasks, notifier, "created", data)
    return SuccessResponse.create(message="Menu item created successfully", data=data)


@router.put("/{menu_item_id}")
def update_menu_item(
    menu_item_id: str,
    payload: MenuItemUpdate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    menu_service: MenuService = Depends(deps.get_menu_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item = menu_service.update(menu_item_id, payload.model_dump(exclude_unset=True))
    data = MenuItemResponse.model_validate(item)
    _announce(background_tasks, notifier, "updated", data)
    return SuccessResponse.create(message="Menu item updated successfully", data=data)


@router.delete("/{menu_item_id}")
def delete_menu_item(
    menu_item_id: str,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    menu_service: MenuService = Depends(deps.get_menu_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    menu_service.delete(menu_item_id)
    _announce(background_tasks, notifier, "deleted", {"id": menu_item_id})
    return SuccessResponse.create(message="Menu item deleted successfully")


@router.patch("/{menu_item_id}/availability")
def set_availability(
    menu_item_id: str,
    payload: AvailabilityUpdate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    menu_service: MenuService = Depends(deps.get_menu_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item = menu_service.set_availability(menu_item_id, payload.is_available)
    data = MenuItemResponse.model_validate(item)
    _announce(background_tasks, notifier, "availability", data)
    return SuccessResponse.create(
        message=f"Menu item {'enabled' if item.is_available else 'disabled'}",
        data=data,
    )
