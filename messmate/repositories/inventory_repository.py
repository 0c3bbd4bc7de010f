"""Inventory data access."""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.enums import AlertType, InventoryCategory
from messmate.models.inventory import InventoryAlert, InventoryItem, StockMovement
from messmate.repositories.base_repository import BaseRepository


class InventoryRepository(BaseRepository[InventoryItem]):
    resource_name = "Inventory item"

    def __init__(self, db: Session):
        super().__init__(InventoryItem, db)

    def get_by_code(self, item_code: str) -> Optional[InventoryItem]:
        return self.get_by(item_code=item_code.strip().upper())

    def active_items(
        self,
        category: Optional[InventoryCategory] = None,
        search: Optional[str] = None,
    ) -> List[InventoryItem]:
        stmt = select(InventoryItem).where(InventoryItem.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(InventoryItem.category == category)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(InventoryItem.item_name).like(pattern),
                    func.lower(InventoryItem.item_code).like(pattern),
                )
            )
        return list(self.db.scalars(stmt.order_by(InventoryItem.item_name)).all())

    def expiring_before(self, cutoff: date) -> List[InventoryItem]:
        stmt = select(InventoryItem).where(
            InventoryItem.is_active.is_(True),
            InventoryItem.expiry_date.is_not(None),
            InventoryItem.expiry_date <= cutoff,
        )
        return list(self.db.scalars(stmt).all())

    # ==================== Movements & alerts ====================

    def add_movement(self, **values) -> StockMovement:
        movement = StockMovement(**values)
        self.db.add(movement)
        self.db.flush()
        return movement

    def adjust_stock(self, item_id: str, delta: Decimal, **values) -> bool:
        """
        Apply ``delta`` to the stock in one conditional UPDATE.

        The update only matches while the result stays non-negative, so
        concurrent withdrawals cannot take more than is on the shelf.
        """
        self.db.flush()
        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == item_id, InventoryItem.current_stock + delta >= 0)
            .values(current_stock=InventoryItem.current_stock + delta, **values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def open_alert(self, item_id: str, alert_type: AlertType) -> Optional[InventoryAlert]:
        stmt = select(InventoryAlert).where(
            InventoryAlert.item_id == item_id,
            InventoryAlert.type == alert_type,
            InventoryAlert.acknowledged.is_(False),
        )
        return self.db.scalars(stmt).first()

    def open_alerts(self, item_id: Optional[str] = None) -> List[InventoryAlert]:
        stmt = select(InventoryAlert).where(InventoryAlert.acknowledged.is_(False))
        if item_id:
            stmt = stmt.where(InventoryAlert.item_id == item_id)
        return list(self.db.scalars(stmt.order_by(InventoryAlert.created_at.desc())).all())

    def get_alert(self, alert_id: str) -> Optional[InventoryAlert]:
        return self.db.get(InventoryAlert, alert_id)

    def total_value(self) -> Decimal:
        stmt = select(
            func.coalesce(func.sum(InventoryItem.current_stock * InventoryItem.unit_price), 0)
        ).where(InventoryItem.is_active.is_(True))
        return Decimal(str(self.db.scalar(stmt) or 0))
