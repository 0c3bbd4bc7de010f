"""
Daily menu item model.

An orderable item scoped to one date and one meal type, with a finite
number of portions (``current_quantity``).
"""

from datetime import date as Date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from messmate.models.base import TimestampModel, enum_column, utcnow
from messmate.models.enums import MealType

_CENT = Decimal("0.01")


class MenuItem(TimestampModel):
    """Daily menu entry."""

    __tablename__ = "menu_items"
    __table_args__ = (
        CheckConstraint("current_quantity >= 0", name="ck_menu_items_quantity_non_negative"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_menu_items_discount_range"),
        Index("ix_menu_items_date_meal", "date", "meal_type"),
    )

    date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    meal_type: Mapped[MealType] = mapped_column(enum_column(MealType), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="veg")
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))

    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    available_from: Mapped[Optional[datetime]] = mapped_column(DateTime)
    available_until: Mapped[Optional[datetime]] = mapped_column(DateTime)
    max_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    rating_average: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0"))
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def effective_price(self) -> Decimal:
        price = Decimal(self.price)
        discount = Decimal(self.discount or 0)
        return (price - price * discount / Decimal(100)).quantize(_CENT, rounding=ROUND_HALF_UP)

    def is_within_window(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        if self.available_from and now < self.available_from:
            return False
        if self.available_until and now > self.available_until:
            return False
        return True

    def check_availability(self, quantity: int = 1, now: Optional[datetime] = None) -> bool:
        return (
            bool(self.is_available)
            and self.current_quantity >= quantity
            and self.is_within_window(now)
        )

    def add_rating(self, rating: int) -> None:
        total = Decimal(self.rating_average) * self.rating_count + rating
        self.rating_count += 1
        self.rating_average = (total / self.rating_count).quantize(_CENT, rounding=ROUND_HALF_UP)
