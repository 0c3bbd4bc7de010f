"""Payment data access."""

from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import PaymentRecordStatus, PaymentType
from messmate.models.payment import Payment
from messmate.repositories.base_repository import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    resource_name = "Payment"

    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def get_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        return self.get_by(transaction_id=transaction_id)

    def list(
        self,
        params: PaginationParams,
        user_id: Optional[str] = None,
        status: Optional[PaymentRecordStatus] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> Tuple[List[Payment], int]:
        stmt = select(Payment).options(selectinload(Payment.user))
        if user_id:
            stmt = stmt.where(Payment.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Payment.status == status)
        if payment_type is not None:
            stmt = stmt.where(Payment.payment_type == payment_type)
        return self.paginate(stmt.order_by(Payment.created_at.desc()), params)

    def pending_recharges(self) -> List[Payment]:
        stmt = (
            select(Payment)
            .options(selectinload(Payment.user))
            .where(
                Payment.status == PaymentRecordStatus.PENDING,
                Payment.payment_type == PaymentType.WALLET_RECHARGE,
            )
            .order_by(Payment.created_at.desc())
        )
        return list(self.db.scalars(stmt).all())

    def claim_pending(self, payment_id: str, status: PaymentRecordStatus, processed_by_id: str, **values) -> bool:
        """
        Decide a payment only while it is still pending.

        One conditional UPDATE, so of two concurrent decisions exactly one
        matches the row. Returns False when the payment was already decided.
        """
        self.db.flush()
        stmt = (
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentRecordStatus.PENDING)
            .values(status=status, processed_by_id=processed_by_id, processed_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1
