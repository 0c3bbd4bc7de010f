"""Booking data access."""

from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.booking import Booking
from messmate.models.enums import TERMINAL_BOOKING_STATUSES, BookingStatus, MealType, PaymentStatus
from messmate.models.user import User
from messmate.repositories.base_repository import BaseRepository

ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.PREPARED)
EATEN_STATUSES = (BookingStatus.SERVED, BookingStatus.COMPLETED)


class BookingRepository(BaseRepository[Booking]):
    resource_name = "Booking"

    def __init__(self, db: Session):
        super().__init__(Booking, db)

    def _base(self):
        return select(Booking).options(selectinload(Booking.menu_item), selectinload(Booking.user))

    def get_by_booking_id(self, booking_id: str) -> Optional[Booking]:
        return self.get_by(booking_id=booking_id)

    def list(
        self,
        params: PaginationParams,
        user_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        meal_type: Optional[MealType] = None,
        on_date: Optional[date] = None,
    ) -> Tuple[List[Booking], int]:
        stmt = self._base()
        if user_id:
            stmt = stmt.where(Booking.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if meal_type is not None:
            stmt = stmt.where(Booking.meal_type == meal_type)
        if on_date is not None:
            stmt = stmt.where(Booking.booking_date == on_date)
        return self.paginate(stmt.order_by(Booking.created_at.desc()), params)

    def search(
        self,
        params: PaginationParams,
        query: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[Booking], int]:
        stmt = self._base().join(User, Booking.user_id == User.id)
        if query:
            pattern = f"%{query.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Booking.booking_id).like(pattern),
                    func.lower(User.name).like(pattern),
                    func.lower(User.email).like(pattern),
                )
            )
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if date_from is not None:
            stmt = stmt.where(Booking.booking_date >= date_from)
        if date_to is not None:
            stmt = stmt.where(Booking.booking_date <= date_to)
        return self.paginate(stmt.order_by(Booking.created_at.desc()), params)

    def current_with_qr(self, user_id: str, now: datetime) -> Optional[Booking]:
        stmt = (
            self._base()
            .where(
                Booking.user_id == user_id,
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.qr_expires_at.is_not(None),
                Booking.qr_expires_at > now,
            )
            .order_by(Booking.created_at.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def status_counts_for_user(self, user_id: str) -> dict:
        stmt = (
            select(Booking.status, func.count(Booking.id))
            .where(Booking.user_id == user_id)
            .group_by(Booking.status)
        )
        return {BookingStatus(s).value: int(c) for s, c in self.db.execute(stmt).all()}

    def mark_cancelled(self, booking_id: str, reason: str, actor_id: str, refund: bool) -> bool:
        """
        Cancel a booking that is not yet terminal.

        With ``refund`` the row must also still be paid, and it is moved to
        refunded in the same statement, so only one caller can win the
        refund. Returns False when no row matched.
        """
        self.db.flush()
        values = {
            "status": BookingStatus.CANCELLED,
            "cancellation_reason": reason,
            "cancelled_at": utcnow(),
            "cancelled_by_id": actor_id,
        }
        stmt = update(Booking).where(
            Booking.id == booking_id,
            Booking.status.not_in(tuple(TERMINAL_BOOKING_STATUSES)),
        )
        if refund:
            stmt = stmt.where(Booking.payment_status == PaymentStatus.PAID)
            values["payment_status"] = PaymentStatus.REFUNDED
        stmt = stmt.values(**values).execution_options(synchronize_session=False)
        return self.db.execute(stmt).rowcount == 1

    # ==================== Meal history ====================

    def for_user_since(self, user_id: str, since: date) -> List[Booking]:
        stmt = (
            self._base()
            .where(Booking.user_id == user_id, Booking.booking_date >= since)
            .order_by(Booking.booking_date.desc(), Booking.created_at.desc())
        )
        return list(self.db.scalars(stmt).all())

    def recent_for_user(self, user_id: str, limit: int) -> List[Booking]:
        stmt = self._base().where(Booking.user_id == user_id).order_by(Booking.created_at.desc()).limit(limit)
        return list(self.db.scalars(stmt).all())

    def last_completed(self, user_id: str) -> Optional[Booking]:
        stmt = (
            self._base()
            .where(Booking.user_id == user_id, Booking.status.in_(EATEN_STATUSES))
            .order_by(Booking.booking_date.desc(), Booking.updated_at.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def attendance_rows(self, user_id: str, date_from: date, date_to: date) -> List[Tuple[date, BookingStatus]]:
        """``(booking_date, status)`` of every non-cancelled booking in the range."""
        stmt = select(Booking.booking_date, Booking.status).where(
            Booking.user_id == user_id,
            Booking.booking_date >= date_from,
            Booking.booking_date <= date_to,
            Booking.status != BookingStatus.CANCELLED,
        )
        return [(d, BookingStatus(s)) for d, s in self.db.execute(stmt).all()]
