"""
Wallet ledger.

Each user's balance lives on ``users.wallet_balance`` and every change is
mirrored by exactly one ``WalletTransaction`` row written in the same
transaction, so the balance always equals credits minus debits.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.core.exceptions import InsufficientBalanceError, ValidationError
from messmate.core.pagination import PaginationParams
from messmate.models.enums import TransactionType
from messmate.models.user import User, WalletTransaction
from messmate.repositories.user_repository import UserRepository, WalletTransactionRepository
from messmate.services.base_service import BaseService

_CENT = Decimal("0.01")


def to_amount(value: Any) -> Decimal:
    """Parse a positive money amount rounded to paise."""
    try:
        amount = Decimal(str(value)).quantize(_CENT)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Invalid amount", field_errors={"amount": ["must be a number"]})
    if amount <= 0:
        raise ValidationError("Invalid amount", field_errors={"amount": ["must be greater than 0"]})
    return amount


class WalletService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)
        self.transactions = WalletTransactionRepository(db)

    def add_money(
        self,
        user: User,
        amount: Any,
        description: str,
        transaction_id: Optional[str] = None,
    ) -> WalletTransaction:
        """Credit the wallet. No upper bound is applied."""
        amount = to_amount(amount)
        with self.transaction():
            self.users.credit_balance(user.id, amount)
            self.db.refresh(user, attribute_names=["wallet_balance"])
            entry = self.transactions.create(
                user_id=user.id,
                type=TransactionType.CREDIT,
                amount=amount,
                description=description,
                transaction_id=transaction_id,
                balance_after=user.wallet_balance,
            )
        self._logger.info(
            "Wallet credited",
            extra={"wallet_user_id": user.id, "amount": float(amount), "reference": transaction_id},
        )
        return entry

    def deduct_money(
        self,
        user: User,
        amount: Any,
        description: str,
        transaction_id: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Debit the wallet.

        Raises:
            InsufficientBalanceError: balance is lower than ``amount``; the
                balance is left untouched.
        """
        amount = to_amount(amount)
        with self.transaction():
            if not self.users.debit_balance(user.id, amount):
                self.db.refresh(user, attribute_names=["wallet_balance"])
                raise InsufficientBalanceError(amount, user.wallet_balance)
            self.db.refresh(user, attribute_names=["wallet_balance"])
            entry = self.transactions.create(
                user_id=user.id,
                type=TransactionType.DEBIT,
                amount=amount,
                description=description,
                transaction_id=transaction_id,
                balance_after=user.wallet_balance,
            )
        self._logger.info(
            "Wallet debited",
            extra={"wallet_user_id": user.id, "amount": float(amount), "reference": transaction_id},
        )
        return entry

    def ledger_totals(self, user: User) -> Dict[str, Decimal]:
        totals = self.transactions.totals_for_user(user.id)
        return {
            "total_credited": totals[TransactionType.CREDIT],
            "total_debited": totals[TransactionType.DEBIT],
        }

    def recent_transactions(self, user: User, limit: int = 10) -> List[WalletTransaction]:
        return self.transactions.recent_for_user(user.id, limit)

    def list_transactions(
        self, user: User, params: PaginationParams
    ) -> Tuple[List[WalletTransaction], int]:
        return self.transactions.list_for_user(user.id, params)
