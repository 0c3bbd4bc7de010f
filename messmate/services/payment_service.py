"""
UPI payments and wallet recharges.

A recharge is a ``Payment`` with type ``wallet_recharge``. It stays pending
until an admin approves it (crediting the wallet) or rejects it. Only
pending payments can be decided.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.config import settings
from messmate.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import (
    NotificationType,
    PaymentMethod,
    PaymentRecordStatus,
    PaymentType,
    TransactionType,
    UserRole,
)
from messmate.models.payment import Payment, generate_transaction_id
from messmate.models.user import User
from messmate.repositories.payment_repository import PaymentRepository
from messmate.repositories.user_repository import UserRepository, WalletTransactionRepository
from messmate.services.base_service import BaseService, track_performance
from messmate.services.notification_service import NotificationService
from messmate.services.wallet_service import WalletService, to_amount
from messmate.utils.qr import build_upi_url, qr_data_url


class PaymentService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.payments = PaymentRepository(db)
        self.users = UserRepository(db)
        self.ledger = WalletTransactionRepository(db)
        self.wallet = WalletService(db)
        self.notifications = NotificationService(db)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    @track_performance("generate_upi_payment")
    def generate_upi(
        self,
        user: User,
        amount: Any,
        payment_type: PaymentType = PaymentType.WALLET_RECHARGE,
        description: Optional[str] = None,
    ) -> Tuple[Payment, str]:
        """Create a pending UPI payment; returns it with a QR data URL."""
        amount = to_amount(amount)
        transaction_id = generate_transaction_id()
        note = description or self._default_note(payment_type)
        upi_url = build_upi_url(
            settings.UPI_ID,
            settings.UPI_PAYEE_NAME,
            amount=amount,
            reference=transaction_id,
            note=note,
            currency=settings.CURRENCY,
        )
        with self.transaction():
            payment = self.payments.create(
                transaction_id=transaction_id,
                user_id=user.id,
                amount=amount,
                currency=settings.CURRENCY,
                method=PaymentMethod.UPI,
                payment_type=payment_type,
                status=PaymentRecordStatus.PENDING,
                description=note,
                upi_id=settings.UPI_ID,
                upi_url=upi_url,
            )
        self._logger.info(
            "UPI payment created",
            extra={"transaction_id": transaction_id, "payment_user_id": user.id, "amount": float(amount)},
        )
        return payment, qr_data_url(upi_url)

    def request_recharge(self, user: User, amount: Any, description: Optional[str] = None) -> Tuple[Payment, str]:
        return self.generate_upi(user, amount, PaymentType.WALLET_RECHARGE, description)

    @staticmethod
    def _default_note(payment_type: PaymentType) -> str:
        if payment_type == PaymentType.WALLET_RECHARGE:
            return "MessMate wallet recharge"
        return f"MessMate {payment_type.value.replace('_', ' ')}"

    def submit_verification(self, user: User, payment_id: str, utr_reference: str) -> Payment:
        """Attach the user's UTR reference to a pending payment for review."""
        payment = self.get_for(user, payment_id)
        self._ensure_pending(payment)
        utr_reference = (utr_reference or "").strip()
        if not utr_reference:
            raise ValidationError(
                "UTR reference is required", field_errors={"utr_reference": ["required"]}
            )
        with self.transaction():
            payment.utr_reference = utr_reference
        return payment

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_for(self, actor: User, payment_id: str) -> Payment:
        payment = self.payments.get(payment_id) or self.payments.get_by_transaction_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        if not actor.is_admin and payment.user_id != actor.id:
            raise AuthorizationError("Not authorized to access this payment")
        return payment

    def list(
        self,
        actor: User,
        params: PaginationParams,
        status: Optional[PaymentRecordStatus] = None,
        payment_type: Optional[PaymentType] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Payment], int]:
        if not actor.is_admin:
            user_id = actor.id
        return self.payments.list(params, user_id=user_id, status=status, payment_type=payment_type)

    def pending_recharges(self) -> List[Payment]:
        return self.payments.pending_recharges()

    def all_wallets(self, params: PaginationParams, search: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        users, total = self.users.search(params, role=UserRole.STUDENT, search=search)
        rows = []
        for user in users:
            totals = self.ledger.totals_for_user(user.id)
            rows.append(
                {
                    "user_id": user.id,
                    "name": user.name,
                    "email": user.email,
                    "student_id": user.student_id,
                    "wallet_balance": float(user.wallet_balance),
                    "total_credited": float(totals[TransactionType.CREDIT]),
                    "total_debited": float(totals[TransactionType.DEBIT]),
                }
            )
        return rows, total

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    @track_performance("approve_payment")
    def approve(self, admin: User, payment_id: str, notes: Optional[str] = None) -> Payment:
        payment = self.get_for(admin, payment_id)
        self._ensure_pending(payment)
        with self.transaction():
            extra = {"description": notes} if notes else {}
            self._claim(payment, PaymentRecordStatus.COMPLETED, admin, **extra)
            if PaymentType(payment.payment_type) == PaymentType.WALLET_RECHARGE:
                owner = self.users.get_or_404(payment.user_id)
                self.wallet.add_money(
                    owner,
                    payment.amount,
                    "Wallet recharge via UPI",
                    transaction_id=payment.transaction_id,
                )
            self.notifications.notify(
                payment.user_id,
                "Payment approved",
                f"Your payment of {settings.CURRENCY} {Decimal(payment.amount):.2f} was approved.",
                NotificationType.PAYMENT,
                {"payment_id": payment.id, "status": PaymentRecordStatus.COMPLETED.value},
            )
        self._logger.info(
            "Payment approved",
            extra={"transaction_id": payment.transaction_id, "admin_id": admin.id},
        )
        return payment

    @track_performance("reject_payment")
    def reject(self, admin: User, payment_id: str, reason: Optional[str] = None) -> Payment:
        payment = self.get_for(admin, payment_id)
        self._ensure_pending(payment)
        with self.transaction():
            self._claim(
                payment, PaymentRecordStatus.FAILED, admin, failure_reason=reason or "Rejected by admin"
            )
            self.notifications.notify(
                payment.user_id,
                "Payment rejected",
                f"Your payment {payment.transaction_id} was rejected: {payment.failure_reason}",
                NotificationType.PAYMENT,
                {"payment_id": payment.id, "status": PaymentRecordStatus.FAILED.value},
            )
        self._logger.info(
            "Payment rejected",
            extra={"transaction_id": payment.transaction_id, "admin_id": admin.id},
        )
        return payment

    def _claim(self, payment: Payment, status: PaymentRecordStatus, admin: User, **values) -> None:
        """Move a pending payment to ``status``; another decision may have won the row."""
        if not self.payments.claim_pending(payment.id, status, admin.id, **values):
            self.db.refresh(payment)
            self._ensure_pending(payment)
            raise InvalidStateError("Payment has already been processed")
        self.db.refresh(payment)

    @staticmethod
    def _ensure_pending(payment: Payment) -> None:
        if PaymentRecordStatus(payment.status) != PaymentRecordStatus.PENDING:
            raise InvalidStateError(
                "Payment has already been processed",
                {"status": PaymentRecordStatus(payment.status).value},
            )
