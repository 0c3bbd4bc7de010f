"""
Booking model: one user's reservation of a menu item for a meal slot.
"""

import secrets
import string
import time
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from messmate.models.base import TimestampModel, enum_column
from messmate.models.enums import BookingStatus, MealType, PaymentMethod, PaymentStatus

if TYPE_CHECKING:
    from messmate.models.menu import MenuItem
    from messmate.models.user import User

_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_booking_id() -> str:
    """``BK`` + epoch millis + 5 random uppercase alphanumerics."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(5))
    return f"BK{int(time.time() * 1000)}{suffix}"


class Booking(TimestampModel):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("quantity >= 1 AND quantity <= 10", name="ck_bookings_quantity_range"),
    )

    booking_id: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True, default=generate_booking_id
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    menu_item_id: Mapped[str] = mapped_column(ForeignKey("menu_items.id"), nullable=False, index=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    meal_type: Mapped[MealType] = mapped_column(enum_column(MealType), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    meal_time: Mapped[Optional[str]] = mapped_column(String(20))
    special_requests: Mapped[Optional[str]] = mapped_column(Text)

    item_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    final_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        enum_column(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus), nullable=False, default=PaymentStatus.PENDING
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        enum_column(PaymentMethod), nullable=False, default=PaymentMethod.WALLET
    )

    qr_data: Mapped[Optional[str]] = mapped_column(Text)
    qr_url: Mapped[Optional[str]] = mapped_column(Text)
    qr_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    estimated_pickup_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    preparation_start_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    preparation_end_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    actual_pickup_time: Mapped[Optional[datetime]] = mapped_column(DateTime)

    handled_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    admin_notes: Mapped[Optional[str]] = mapped_column(Text)

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    cancelled_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))

    feedback_rating: Mapped[Optional[int]] = mapped_column(Integer)
    feedback_comment: Mapped[Optional[str]] = mapped_column(Text)
    feedback_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    user: Mapped["User"] = relationship(back_populates="bookings", foreign_keys=[user_id])
    menu_item: Mapped["MenuItem"] = relationship()

    @property
    def is_cancellable(self) -> bool:
        return not BookingStatus(self.status).is_terminal
