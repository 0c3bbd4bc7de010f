"""
Payment records for UPI recharges and other money movements outside the
wallet ledger.
"""

import secrets
import string
import time
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from messmate.models.base import TimestampModel, enum_column
from messmate.models.enums import PaymentMethod, PaymentRecordStatus, PaymentType

if TYPE_CHECKING:
    from messmate.models.user import User


def generate_transaction_id() -> str:
    rand = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(9))
    return f"TXN_{int(time.time() * 1000)}_{rand}"


class Payment(TimestampModel):
    __tablename__ = "payments"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_payments_amount_positive"),)

    transaction_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True, default=generate_transaction_id
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    method: Mapped[PaymentMethod] = mapped_column(
        enum_column(PaymentMethod), nullable=False, default=PaymentMethod.UPI
    )
    payment_type: Mapped[PaymentType] = mapped_column(
        enum_column(PaymentType), nullable=False, default=PaymentType.WALLET_RECHARGE
    )
    status: Mapped[PaymentRecordStatus] = mapped_column(
        enum_column(PaymentRecordStatus), nullable=False, default=PaymentRecordStatus.PENDING, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(String(255))
    upi_id: Mapped[Optional[str]] = mapped_column(String(100))
    upi_url: Mapped[Optional[str]] = mapped_column(Text)
    utr_reference: Mapped[Optional[str]] = mapped_column(String(64))
    booking_id: Mapped[Optional[str]] = mapped_column(ForeignKey("bookings.id"))

    processed_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    failure_reason: Mapped[Optional[str]] = mapped_column(String(255))

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
