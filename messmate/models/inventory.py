"""
Inventory item with its stock movement log and alerts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from messmate.models.base import TimestampModel, enum_column, utcnow
from messmate.models.enums import (
    AlertSeverity,
    AlertType,
    InventoryCategory,
    InventoryUnit,
    MovementType,
    StockStatus,
)


class InventoryItem(TimestampModel):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_inventory_items_stock_non_negative"),
    )

    item_name: Mapped[str] = mapped_column(String(100), nullable=False)
    item_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    category: Mapped[InventoryCategory] = mapped_column(
        enum_column(InventoryCategory), nullable=False, default=InventoryCategory.OTHER
    )
    description: Mapped[Optional[str]] = mapped_column(Text)

    current_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    minimum_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    maximum_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("1000"))
    reorder_level: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    unit: Mapped[InventoryUnit] = mapped_column(enum_column(InventoryUnit), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    supplier_name: Mapped[Optional[str]] = mapped_column(String(100))
    supplier_contact: Mapped[Optional[str]] = mapped_column(String(100))
    storage_location: Mapped[Optional[str]] = mapped_column(String(100))
    expiry_date: Mapped[Optional[date]] = mapped_column(Date)
    last_restocked: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    movements: Mapped[List["StockMovement"]] = relationship(
        back_populates="item",
        order_by="StockMovement.created_at",
        cascade="all, delete-orphan",
    )
    alerts: Mapped[List["InventoryAlert"]] = relationship(
        back_populates="item",
        order_by="InventoryAlert.created_at",
        cascade="all, delete-orphan",
    )

    @property
    def total_value(self) -> Decimal:
        return (Decimal(self.current_stock) * Decimal(self.unit_price)).quantize(Decimal("0.01"))

    @property
    def stock_status(self) -> StockStatus:
        stock = Decimal(self.current_stock)
        if stock <= 0:
            return StockStatus.OUT_OF_STOCK
        if stock <= Decimal(self.reorder_level):
            return StockStatus.CRITICAL
        if stock <= Decimal(self.minimum_stock):
            return StockStatus.LOW
        if stock >= Decimal(self.maximum_stock):
            return StockStatus.OVERSTOCK
        return StockStatus.NORMAL

    def days_until_expiry(self, today: Optional[date] = None) -> Optional[int]:
        if self.expiry_date is None:
            return None
        today = today or utcnow().date()
        return (self.expiry_date - today).days


class StockMovement(TimestampModel):
    """Immutable record of one stock change."""

    __tablename__ = "stock_movements"

    item_id: Mapped[str] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[MovementType] = mapped_column(enum_column(MovementType), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    previous_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    new_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255))
    reference: Mapped[Optional[str]] = mapped_column(String(100))
    handled_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))

    item: Mapped["InventoryItem"] = relationship(back_populates="movements")


class InventoryAlert(TimestampModel):
    __tablename__ = "inventory_alerts"

    item_id: Mapped[str] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[AlertType] = mapped_column(enum_column(AlertType), nullable=False)
    message: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[AlertSeverity] = mapped_column(enum_column(AlertSeverity), nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    acknowledged_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    item: Mapped["InventoryItem"] = relationship(back_populates="alerts")
