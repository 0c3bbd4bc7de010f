"""
User and wallet ledger data access.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.enums import TransactionType, UserRole
from messmate.models.user import User, WalletTransaction
from messmate.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    resource_name = "User"

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self.db.scalars(stmt).first()

    def get_by_student_id(self, student_id: str) -> Optional[User]:
        return self.get_by(student_id=student_id)

    def search(
        self,
        params: PaginationParams,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if is_active is not None:
            stmt = stmt.where(User.is_active == is_active)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.name).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(User.student_id).like(pattern),
                )
            )
        return self.paginate(stmt.order_by(User.created_at.desc()), params)

    # ==================== Wallet balance ====================

    def credit_balance(self, user_id: str, amount: Decimal) -> bool:
        self.db.flush()
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(wallet_balance=User.wallet_balance + amount)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def debit_balance(self, user_id: str, amount: Decimal) -> bool:
        """Decrement the balance only if it covers ``amount``."""
        self.db.flush()
        stmt = (
            update(User)
            .where(User.id == user_id, User.wallet_balance >= amount)
            .values(wallet_balance=User.wallet_balance - amount)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def record_booking_spend(self, user_id: str, amount: Decimal) -> None:
        self.db.flush()
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(
                total_bookings=User.total_bookings + 1,
                total_spent=User.total_spent + amount,
            )
            .execution_options(synchronize_session=False)
        )


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    resource_name = "Wallet transaction"

    def __init__(self, db: Session):
        super().__init__(WalletTransaction, db)

    def list_for_user(self, user_id: str, params: PaginationParams) -> Tuple[List[WalletTransaction], int]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc())
        )
        return self.paginate(stmt, params)

    def recent_for_user(self, user_id: str, limit: int = 10) -> List[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    def totals_for_user(self, user_id: str) -> dict:
        """Sum of credits and debits for one user."""
        stmt = (
            select(WalletTransaction.type, func.coalesce(func.sum(WalletTransaction.amount), 0))
            .where(WalletTransaction.user_id == user_id)
            .group_by(WalletTransaction.type)
        )
        totals = {TransactionType.CREDIT: Decimal("0"), TransactionType.DEBIT: Decimal("0")}
        for tx_type, total in self.db.execute(stmt).all():
            totals[TransactionType(tx_type)] = Decimal(str(total))
        return totals
