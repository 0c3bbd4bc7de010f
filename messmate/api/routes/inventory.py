"""Inventory endpoints (admin only)."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import InventoryCategory, MovementType, StockStatus, UserRole
from messmate.models.inventory import InventoryAlert
from messmate.models.user import User
from messmate.realtime import events
from messmate.realtime.notifier import RealtimeNotifier
from messmate.schemas.common import SuccessResponse
from messmate.schemas.inventory import (
    InventoryAlertResponse,
    InventoryItemCreate,
    InventoryItemDetail,
    InventoryItemResponse,
    InventoryItemUpdate,
    StockChangeRequest,
    StockChangeResponse,
    StockMovementResponse,
)
from messmate.services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _emit_alerts(
    background_tasks: BackgroundTasks, notifier: RealtimeNotifier, alerts: List[InventoryAlert]
) -> List[InventoryAlertResponse]:
    payload = [InventoryAlertResponse.model_validate(a) for a in alerts]
    for alert in payload:
        background_tasks.add_task(notifier.to_role, UserRole.ADMIN.value, events.INVENTORY_ALERT, alert)
    return payload


@router.get("/")
def list_inventory(
    category: Optional[InventoryCategory] = Query(None),
    stock_status: Optional[StockStatus] = Query(None),
    search: Optional[str] = Query(None),
    params: PaginationParams = Depends(deps.get_inventory_pagination),
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    items, total, summary = inventory_service.list(params, category, stock_status, search)
    return SuccessResponse.create(
        data={
            "items": [InventoryItemResponse.model_validate(i) for i in items],
            "summary": summary,
        },
        pagination=pagination_meta(params, total),
    )


@router.get("/alerts")
def inventory_alerts(
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    return SuccessResponse.create(data=inventory_service.alerts_overview())


@router.get("/{item_id}")
def get_inventory_item(
    item_id: str,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    item = inventory_service.get(item_id)
    return SuccessResponse.create(data=InventoryItemDetail.model_validate(item))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    payload: InventoryItemCreate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item = inventory_service.create(payload.model_dump(), actor=admin)
    _emit_alerts(background_tasks, notifier, inventory_service.items.open_alerts(item.id))
    return SuccessResponse.create(
        message="Inventory item created successfully", data=InventoryItemResponse.model_validate(item)
    )


@router.put("/{item_id}")
def update_inventory_item(
    item_id: str,
    payload: InventoryItemUpdate,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    item = inventory_service.update(item_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse.create(
        message="Inventory item updated successfully", data=InventoryItemResponse.model_validate(item)
    )


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: str,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    inventory_service.delete(item_id)
    return SuccessResponse.create(message="Inventory item deleted successfully")


@router.post("/{item_id}/add-stock")
def add_stock(
    item_id: str,
    payload: StockChangeRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item, movement, alerts = inventory_service.add_stock(
        item_id,
        payload.quantity,
        reason=payload.reason or "Stock added",
        movement_type=payload.type or MovementType.PURCHASE,
        reference=payload.reference,
        handled_by=admin,
    )
    data = StockChangeResponse(
        item=InventoryItemResponse.model_validate(item),
        movement=StockMovementResponse.model_validate(movement),
        new_alerts=_emit_alerts(background_tasks, notifier, alerts),
    )
    return SuccessResponse.create(message="Stock added successfully", data=data)


@router.post("/{item_id}/consume-stock")
def consume_stock(
    item_id: str,
    payload: StockChangeRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    item, movement, alerts = inventory_service.consume_stock(
        item_id,
        payload.quantity,
        reason=payload.reason or "Stock consumed",
        movement_type=payload.type or MovementType.USAGE,
        reference=payload.reference,
        handled_by=admin,
    )
    data = StockChangeResponse(
        item=InventoryItemResponse.model_validate(item),
        movement=StockMovementResponse.model_validate(movement),
        new_alerts=_emit_alerts(background_tasks, notifier, alerts),
    )
    return SuccessResponse.create(message="Stock consumed successfully", data=data)


@router.post("/{item_id}/alerts/{alert_id}/acknowledge")
def acknowledge_alert(
    item_id: str,
    alert_id: str,
    admin: User = Depends(deps.require_admin),
    inventory_service: InventoryService = Depends(deps.get_inventory_service),
):
    alert = inventory_service.acknowledge_alert(item_id, alert_id, admin)
    return SuccessResponse.create(message="Alert acknowledged", data=InventoryAlertResponse.model_validate(alert))
