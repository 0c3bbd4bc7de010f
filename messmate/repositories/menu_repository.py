"""Menu item data access."""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.enums import MealType
from messmate.models.menu import MenuItem
from messmate.repositories.base_repository import BaseRepository


class MenuRepository(BaseRepository[MenuItem]):
    resource_name = "Menu item"

    def __init__(self, db: Session):
        super().__init__(MenuItem, db)

    def search(
        self,
        params: PaginationParams,
        on_date: Optional[date] = None,
        meal_type: Optional[MealType] = None,
        category: Optional[str] = None,
        available: Optional[bool] = None,
        include_templates: bool = False,
    ) -> Tuple[List[MenuItem], int]:
        stmt = select(MenuItem)
        if not include_templates:
            stmt = stmt.where(MenuItem.is_template.is_(False))
        if on_date is not None:
            stmt = stmt.where(MenuItem.date == on_date)
        if meal_type is not None:
            stmt = stmt.where(MenuItem.meal_type == meal_type)
        if category:
            stmt = stmt.where(MenuItem.category == category)
        if available is not None:
            stmt = stmt.where(MenuItem.is_available.is_(available))
        stmt = stmt.order_by(MenuItem.date.desc(), MenuItem.meal_type, MenuItem.name)
        return self.paginate(stmt, params)

    def for_date(self, on_date: date, available_only: bool = False) -> List[MenuItem]:
        stmt = select(MenuItem).where(MenuItem.date == on_date, MenuItem.is_template.is_(False))
        if available_only:
            stmt = stmt.where(MenuItem.is_available.is_(True))
        return list(self.db.scalars(stmt.order_by(MenuItem.meal_type, MenuItem.name)).all())

    def first_available(self, on_date: date, meal_type: MealType) -> Optional[MenuItem]:
        stmt = (
            select(MenuItem)
            .where(
                MenuItem.date == on_date,
                MenuItem.meal_type == meal_type,
                MenuItem.is_available.is_(True),
                MenuItem.is_template.is_(False),
                MenuItem.current_quantity > 0,
            )
            .order_by(MenuItem.created_at)
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def find_duplicate(self, on_date: date, meal_type: MealType, name: str) -> Optional[MenuItem]:
        stmt = select(MenuItem).where(
            MenuItem.date == on_date,
            MenuItem.meal_type == meal_type,
            MenuItem.name == name,
            MenuItem.is_template.is_(False),
        )
        return self.db.scalars(stmt).first()

    def reserve_quantity(self, menu_item_id: str, quantity: int, revenue: Decimal) -> bool:
        """
        Take ``quantity`` portions if that many are left.

        Single conditional UPDATE, so concurrent callers cannot both take the
        last portion. Returns False when nothing was updated.
        """
        self.db.flush()
        stmt = (
            update(MenuItem)
            .where(MenuItem.id == menu_item_id, MenuItem.current_quantity >= quantity)
            .values(
                current_quantity=MenuItem.current_quantity - quantity,
                total_orders=MenuItem.total_orders + quantity,
                total_revenue=MenuItem.total_revenue + revenue,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1
