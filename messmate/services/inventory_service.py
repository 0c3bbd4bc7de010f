"""
Inventory ledger: stock levels, movement log and threshold alerts.
"""

from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.config import settings
from messmate.core.exceptions import (
    DuplicateEntryError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import (
    AlertSeverity,
    AlertType,
    InventoryCategory,
    MovementType,
    StockStatus,
)
from messmate.models.inventory import InventoryAlert, InventoryItem, StockMovement
from messmate.models.user import User
from messmate.repositories.inventory_repository import InventoryRepository
from messmate.services.base_service import BaseService, track_performance

INBOUND_MOVEMENTS = (MovementType.PURCHASE, MovementType.RETURN, MovementType.ADJUSTMENT)
OUTBOUND_MOVEMENTS = (MovementType.USAGE, MovementType.WASTE)


def _quantity(value: Any) -> Decimal:
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Invalid quantity", field_errors={"quantity": ["must be a number"]})
    if quantity <= 0:
        raise ValidationError("Invalid quantity", field_errors={"quantity": ["must be greater than 0"]})
    return quantity


class InventoryService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.items = InventoryRepository(db)

    # ==================== CRUD ====================

    def get(self, item_id: str) -> InventoryItem:
        return self.items.get_or_404(item_id)

    def list(
        self,
        params: PaginationParams,
        category: Optional[InventoryCategory] = None,
        stock_status: Optional[StockStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[InventoryItem], int, Dict[str, Any]]:
        """
        Page of active items plus a summary over everything matching the
        category/search filters.

        Stock status is derived from several columns, so it is filtered in
        Python after loading.
        """
        items = self.items.active_items(category, search)
        summary = {
            "total_items": len(items),
            "low_stock": sum(
                1 for i in items if i.stock_status in (StockStatus.LOW, StockStatus.CRITICAL)
            ),
            "out_of_stock": sum(1 for i in items if i.stock_status == StockStatus.OUT_OF_STOCK),
            "total_value": float(sum((i.total_value for i in items), Decimal("0"))),
        }
        if stock_status is not None:
            items = [i for i in items if i.stock_status == stock_status]
        total = len(items)
        page = items[params.offset:params.offset + params.limit]
        return page, total, summary

    def create(self, data: Dict[str, Any], actor: Optional[User] = None) -> InventoryItem:
        data = dict(data)
        data["item_code"] = data["item_code"].strip().upper()
        if self.items.get_by_code(data["item_code"]):
            raise DuplicateEntryError("Item code already exists", field="item_code")
        with self.transaction():
            item = self.items.create(**data)
            if item.current_stock and Decimal(item.current_stock) > 0:
                item.last_restocked = utcnow()
            self.check_and_create_alerts(item)
        self._logger.info("Inventory item created", extra={"item_code": item.item_code})
        return item

    def update(self, item_id: str, data: Dict[str, Any]) -> InventoryItem:
        item = self.get(item_id)
        data = dict(data)
        # current stock only changes through the movement log
        data.pop("current_stock", None)
        if data.get("item_code"):
            data["item_code"] = data["item_code"].strip().upper()
            existing = self.items.get_by_code(data["item_code"])
            if existing is not None and existing.id != item.id:
                raise DuplicateEntryError("Item code already exists", field="item_code")
        with self.transaction():
            self.items.update(item, data)
            self.check_and_create_alerts(item)
        return item

    def delete(self, item_id: str) -> None:
        item = self.get(item_id)
        with self.transaction():
            self.items.delete(item)
        self._logger.info("Inventory item deleted", extra={"item_code": item.item_code})

    # ==================== Stock movements ====================

    @track_performance("add_stock")
    def add_stock(
        self,
        item_id: str,
        quantity: Any,
        reason: str = "Stock added",
        movement_type: MovementType = MovementType.PURCHASE,
        reference: Optional[str] = None,
        handled_by: Optional[User] = None,
    ) -> Tuple[InventoryItem, StockMovement, List[InventoryAlert]]:
        quantity = _quantity(quantity)
        if movement_type not in INBOUND_MOVEMENTS:
            raise ValidationError(f"'{movement_type.value}' cannot add stock")
        item = self.get(item_id)

        with self.transaction():
            movement = self._move(
                item, quantity, movement_type, quantity, reason, reference, handled_by,
                last_restocked=utcnow(),
            )
            alerts = self.check_and_create_alerts(item)
        self._logger.info(
            "Stock added",
            extra={"item_code": item.item_code, "quantity": float(quantity), "new_stock": float(item.current_stock)},
        )
        return item, movement, alerts

    @track_performance("consume_stock")
    def consume_stock(
        self,
        item_id: str,
        quantity: Any,
        reason: str = "Stock consumed",
        movement_type: MovementType = MovementType.USAGE,
        reference: Optional[str] = None,
        handled_by: Optional[User] = None,
    ) -> Tuple[InventoryItem, StockMovement, List[InventoryAlert]]:
        """
        Raises:
            InsufficientStockError: ``quantity`` exceeds the current stock.
        """
        quantity = _quantity(quantity)
        if movement_type not in OUTBOUND_MOVEMENTS:
            raise ValidationError(f"'{movement_type.value}' cannot consume stock")
        item = self.get(item_id)

        with self.transaction():
            movement = self._move(item, -quantity, movement_type, quantity, reason, reference, handled_by)
            alerts = self.check_and_create_alerts(item)
        self._logger.info(
            "Stock consumed",
            extra={"item_code": item.item_code, "quantity": float(quantity), "new_stock": float(item.current_stock)},
        )
        return item, movement, alerts

    def _move(
        self,
        item: InventoryItem,
        delta: Decimal,
        movement_type: MovementType,
        quantity: Decimal,
        reason: str,
        reference: Optional[str],
        handled_by: Optional[User],
        **values,
    ) -> StockMovement:
        """Apply a stock change and log it with the levels read back from the row."""
        if not self.items.adjust_stock(item.id, delta, **values):
            self.db.refresh(item, attribute_names=["current_stock"])
            raise InsufficientStockError(quantity, item.current_stock)
        self.db.refresh(item)
        new_stock = Decimal(item.current_stock)
        return self.items.add_movement(
            item_id=item.id,
            type=movement_type,
            quantity=quantity,
            previous_stock=new_stock - delta,
            new_stock=new_stock,
            reason=reason,
            reference=reference,
            handled_by_id=handled_by.id if handled_by else None,
        )

    # ==================== Alerts ====================

    def check_and_create_alerts(self, item: InventoryItem) -> List[InventoryAlert]:
        """
        Re-evaluate thresholds and return newly raised alerts.

        Keyed by ``(item, type)``: while an unacknowledged alert of a type is
        open it is refreshed in place instead of duplicated.
        """
        self.db.flush()
        stock = Decimal(item.current_stock)
        conditions: List[Tuple[AlertType, AlertSeverity, str]] = []

        if stock <= 0:
            conditions.append(
                (AlertType.OUT_OF_STOCK, AlertSeverity.CRITICAL, f"{item.item_name} is out of stock")
            )
        elif stock <= Decimal(item.reorder_level):
            conditions.append(
                (
                    AlertType.LOW_STOCK,
                    AlertSeverity.HIGH,
                    f"{item.item_name} is running low ({stock.normalize():f} {item.unit.value} left)",
                )
            )

        days_left = item.days_until_expiry()
        if days_left is not None and days_left <= settings.EXPIRY_WARNING_DAYS:
            severity = AlertSeverity.HIGH if days_left <= 3 else AlertSeverity.MEDIUM
            conditions.append(
                (AlertType.EXPIRY_WARNING, severity, f"{item.item_name} expires in {days_left} days")
            )

        created: List[InventoryAlert] = []
        for alert_type, severity, message in conditions:
            existing = self.items.open_alert(item.id, alert_type)
            if existing is not None:
                existing.message = message
                existing.severity = severity
                continue
            alert = InventoryAlert(item_id=item.id, type=alert_type, severity=severity, message=message)
            self.db.add(alert)
            created.append(alert)
        self.db.flush()
        return created

    def acknowledge_alert(self, item_id: str, alert_id: str, admin: User) -> InventoryAlert:
        alert = self.items.get_alert(alert_id)
        if alert is None or alert.item_id != item_id:
            raise NotFoundError("Inventory alert", alert_id)
        if not alert.acknowledged:
            with self.transaction():
                alert.acknowledged = True
                alert.acknowledged_by_id = admin.id
                alert.acknowledged_at = utcnow()
        return alert

    def alerts_overview(self) -> Dict[str, List[Dict[str, Any]]]:
        """Items grouped by the condition they are in."""
        items = self.items.active_items()
        cutoff = utcnow().date() + timedelta(days=settings.EXPIRY_WARNING_DAYS)

        def brief(item: InventoryItem) -> Dict[str, Any]:
            return {
                "id": item.id,
                "item_name": item.item_name,
                "item_code": item.item_code,
                "current_stock": float(item.current_stock),
                "reorder_level": float(item.reorder_level),
                "unit": item.unit.value,
                "expiry_date": item.expiry_date.isoformat() if item.expiry_date else None,
            }

        return {
            "low_stock": [
                brief(i) for i in items
                if i.stock_status in (StockStatus.LOW, StockStatus.CRITICAL)
            ],
            "out_of_stock": [brief(i) for i in items if i.stock_status == StockStatus.OUT_OF_STOCK],
            "expiring_soon": [brief(i) for i in self.items.expiring_before(cutoff)],
            "active_alerts": [
                {
                    "id": a.id,
                    "item_id": a.item_id,
                    "type": a.type.value,
                    "severity": a.severity.value,
                    "message": a.message,
                    "created_at": a.created_at.isoformat(),
                }
                for a in self.items.open_alerts()
            ],
        }
