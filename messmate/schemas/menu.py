"""
Daily menu schemas.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from messmate.models.enums import MealType
from messmate.schemas.common import BaseSchema

__all__ = [
    "MenuEntry",
    "MenuItemCreate",
    "MenuItemUpdate",
    "AvailabilityUpdate",
    "MenuItemResponse",
    "TodayMenuResponse",
]


class MenuEntry(BaseSchema):
    """One dish listed on a menu item."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    icon: Optional[str] = Field(None, max_length=50)


class MenuItemCreate(BaseSchema):
    date: Date
    meal_type: MealType
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: str = Field("veg", max_length=50)
    items: List[MenuEntry] = Field(default_factory=list)
    image_url: Optional[str] = Field(None, max_length=500)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    discount: Decimal = Field(Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    is_available: bool = True
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    max_quantity: Optional[int] = Field(None, ge=1)
    current_quantity: Optional[int] = Field(None, ge=0)
    is_template: bool = False


class MenuItemUpdate(BaseSchema):
    date: Optional[Date] = None
    meal_type: Optional[MealType] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    items: Optional[List[MenuEntry]] = None
    image_url: Optional[str] = Field(None, max_length=500)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    discount: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    is_available: Optional[bool] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    max_quantity: Optional[int] = Field(None, ge=1)
    current_quantity: Optional[int] = Field(None, ge=0)
    is_template: Optional[bool] = None


class AvailabilityUpdate(BaseSchema):
    is_available: bool


class MenuItemResponse(BaseSchema):
    id: str
    date: Date
    meal_type: MealType
    name: str
    description: Optional[str] = None
    category: str
    items: List[MenuEntry] = Field(default_factory=list)
    image_url: Optional[str] = None
    price: float
    discount: float
    effective_price: float
    is_available: bool
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    max_quantity: int
    current_quantity: int
    is_template: bool
    total_orders: int
    total_revenue: float
    rating_average: float
    rating_count: int
    created_at: datetime
    updated_at: datetime


class TodayMenuResponse(BaseSchema):
    date: Date
    breakfast: List[MenuItemResponse] = Field(default_factory=list)
    lunch: List[MenuItemResponse] = Field(default_factory=list)
    dinner: List[MenuItemResponse] = Field(default_factory=list)
