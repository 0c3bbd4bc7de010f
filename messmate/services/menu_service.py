"""
Daily menu management and portion accounting.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.config import settings
from messmate.core.exceptions import (
    DuplicateEntryError,
    InsufficientQuantityError,
    ValidationError,
)
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import MealType
from messmate.models.menu import MenuItem
from messmate.repositories.menu_repository import MenuRepository
from messmate.services.base_service import BaseService


class MenuService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.menus = MenuRepository(db)

    def get(self, menu_item_id: str) -> MenuItem:
        return self.menus.get_or_404(menu_item_id)

    def list(
        self,
        params: PaginationParams,
        on_date: Optional[date] = None,
        meal_type: Optional[MealType] = None,
        category: Optional[str] = None,
        available: Optional[bool] = None,
    ) -> Tuple[List[MenuItem], int]:
        return self.menus.search(params, on_date, meal_type, category, available)

    def today(self) -> Dict[str, List[MenuItem]]:
        """Today's non-template items grouped by meal type."""
        grouped: Dict[str, List[MenuItem]] = OrderedDict((m.value, []) for m in MealType)
        for item in self.menus.for_date(utcnow().date()):
            grouped[MealType(item.meal_type).value].append(item)
        return grouped

    def create(self, data: Dict[str, Any]) -> MenuItem:
        data = dict(data)
        if not data.get("is_template") and self.menus.find_duplicate(
            data["date"], data["meal_type"], data["name"]
        ):
            raise DuplicateEntryError(
                "A menu item with this name already exists for that date and meal", field="name"
            )
        max_quantity = data.get("max_quantity") or settings.DEFAULT_MENU_QUANTITY
        data["max_quantity"] = max_quantity
        data.setdefault("current_quantity", max_quantity)
        if data["current_quantity"] is None:
            data["current_quantity"] = max_quantity
        self._validate_window(data.get("available_from"), data.get("available_until"))

        with self.transaction():
            item = self.menus.create(**data)
        self._logger.info("Menu item created", extra={"menu_item_id": item.id, "menu_date": str(item.date)})
        return item

    def update(self, menu_item_id: str, data: Dict[str, Any]) -> MenuItem:
        item = self.get(menu_item_id)
        self._validate_window(
            data.get("available_from", item.available_from),
            data.get("available_until", item.available_until),
        )
        if "current_quantity" in data and data["current_quantity"] is not None:
            ceiling = data.get("max_quantity") or item.max_quantity
            if data["current_quantity"] > ceiling:
                raise ValidationError(
                    "current_quantity cannot exceed max_quantity",
                    field_errors={"current_quantity": [f"must be <= {ceiling}"]},
                )
        with self.transaction():
            self.menus.update(item, data)
        self._logger.info("Menu item updated", extra={"menu_item_id": item.id, "fields": sorted(data)})
        return item

    def delete(self, menu_item_id: str) -> None:
        item = self.get(menu_item_id)
        with self.transaction():
            self.menus.delete(item)
        self._logger.info("Menu item deleted", extra={"menu_item_id": menu_item_id})

    def set_availability(self, menu_item_id: str, is_available: bool) -> MenuItem:
        return self.update(menu_item_id, {"is_available": is_available})

    def reduce_quantity(self, item: MenuItem, quantity: int) -> MenuItem:
        """
        Take ``quantity`` portions and record the order in the item's stats.

        Raises:
            InsufficientQuantityError: fewer portions remain; the stored
                quantity is left unchanged.
        """
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field_errors={"quantity": [">= 1"]})
        revenue = item.effective_price * quantity
        with self.transaction():
            if not self.menus.reserve_quantity(item.id, quantity, revenue):
                self.db.refresh(item)
                raise InsufficientQuantityError(quantity, item.current_quantity)
            self.db.refresh(item)
        return item

    @staticmethod
    def _validate_window(available_from, available_until) -> None:
        if available_from and available_until and available_until <= available_from:
            raise ValidationError(
                "available_until must be after available_from",
                field_errors={"available_until": ["must be after available_from"]},
            )


def price_quote(item: MenuItem, quantity: int) -> Dict[str, Decimal]:
    """Amounts charged for ``quantity`` portions of ``item``."""
    total = Decimal(item.price) * quantity
    final = item.effective_price * quantity
    return {
        "item_price": item.effective_price,
        "total_amount": total,
        "discount": total - final,
        "final_amount": final,
    }
