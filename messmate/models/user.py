"""
User and wallet ledger models.

The wallet is a balance column on ``User`` plus an append-only list of
``WalletTransaction`` rows. Balance changes go through
``messmate.services.wallet_service.WalletService`` only, which keeps
``wallet_balance == sum(credits) - sum(debits)``.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from messmate.models.base import TimestampModel, enum_column, utcnow
from messmate.models.enums import TransactionType, UserRole

if TYPE_CHECKING:
    from messmate.models.booking import Booking


class User(TimestampModel):
    """Student or admin account."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole), nullable=False, default=UserRole.STUDENT, index=True
    )
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    student_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True)
    department: Mapped[Optional[str]] = mapped_column(String(100))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    preferences: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime)
    login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lock_until: Mapped[Optional[datetime]] = mapped_column(DateTime)

    wallet_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    total_bookings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )

    wallet_transactions: Mapped[List["WalletTransaction"]] = relationship(
        back_populates="user",
        order_by="WalletTransaction.created_at",
        cascade="all, delete-orphan",
    )
    bookings: Mapped[List["Booking"]] = relationship(
        back_populates="user", foreign_keys="Booking.user_id"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > utcnow())

    def has_sufficient_balance(self, amount: Decimal) -> bool:
        return Decimal(self.wallet_balance) >= Decimal(amount)


class WalletTransaction(TimestampModel):
    """One credit or debit entry in a user's wallet ledger."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[TransactionType] = mapped_column(enum_column(TransactionType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    user: Mapped["User"] = relationship(back_populates="wallet_transactions")
