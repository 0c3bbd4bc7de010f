"""
Inventory schemas: items, stock movements and alerts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from messmate.models.enums import (
    AlertSeverity,
    AlertType,
    InventoryCategory,
    InventoryUnit,
    MovementType,
    StockStatus,
)
from messmate.schemas.common import BaseSchema


class InventoryItemCreate(BaseSchema):
    item_name: str = Field(..., min_length=1, max_length=100)
    item_code: str = Field(..., min_length=1, max_length=50)
    category: InventoryCategory = InventoryCategory.OTHER
    description: Optional[str] = None
    current_stock: Decimal = Field(Decimal("0"), ge=0)
    minimum_stock: Decimal = Field(Decimal("0"), ge=0)
    maximum_stock: Decimal = Field(Decimal("1000"), ge=0)
    reorder_level: Decimal = Field(Decimal("0"), ge=0)
    unit: InventoryUnit
    unit_price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    supplier_name: Optional[str] = Field(None, max_length=100)
    supplier_contact: Optional[str] = Field(None, max_length=100)
    storage_location: Optional[str] = Field(None, max_length=100)
    expiry_date: Optional[date] = None


class InventoryItemUpdate(BaseSchema):
    item_name: Optional[str] = Field(None, min_length=1, max_length=100)
    item_code: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[InventoryCategory] = None
    description: Optional[str] = None
    minimum_stock: Optional[Decimal] = Field(None, ge=0)
    maximum_stock: Optional[Decimal] = Field(None, ge=0)
    reorder_level: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[InventoryUnit] = None
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    supplier_name: Optional[str] = Field(None, max_length=100)
    supplier_contact: Optional[str] = Field(None, max_length=100)
    storage_location: Optional[str] = Field(None, max_length=100)
    expiry_date: Optional[date] = None
    is_active: Optional[bool] = None


class StockChangeRequest(BaseSchema):
    quantity: Decimal = Field(..., gt=0)
    reason: Optional[str] = Field(None, max_length=255)
    type: Optional[MovementType] = None
    reference: Optional[str] = Field(None, max_length=100)


class StockMovementResponse(BaseSchema):
    id: str
    type: MovementType
    quantity: float
    previous_stock: float
    new_stock: float
    reason: Optional[str] = None
    reference: Optional[str] = None
    handled_by_id: Optional[str] = None
    created_at: datetime


class InventoryAlertResponse(BaseSchema):
    id: str
    item_id: str
    type: AlertType
    message: str
    severity: AlertSeverity
    acknowledged: bool
    acknowledged_by_id: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class InventoryItemResponse(BaseSchema):
    id: str
    item_name: str
    item_code: str
    category: InventoryCategory
    description: Optional[str] = None
    current_stock: float
    minimum_stock: float
    maximum_stock: float
    reorder_level: float
    unit: InventoryUnit
    unit_price: float
    total_value: float
    stock_status: StockStatus
    supplier_name: Optional[str] = None
    supplier_contact: Optional[str] = None
    storage_location: Optional[str] = None
    expiry_date: Optional[date] = None
    last_restocked: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class InventoryItemDetail(InventoryItemResponse):
    movements: List[StockMovementResponse] = Field(default_factory=list)
    alerts: List[InventoryAlertResponse] = Field(default_factory=list)


class StockChangeResponse(BaseSchema):
    item: InventoryItemResponse
    movement: StockMovementResponse
    new_alerts: List[InventoryAlertResponse] = Field(default_factory=list)
