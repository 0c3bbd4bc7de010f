"""
Aggregate queries behind the admin dashboard.

Dates are compared on ``booking_date`` for bookings and on ``created_at``
for registrations. Revenue only counts bookings whose payment is ``paid``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from messmate.models.booking import Booking
from messmate.models.enums import (
    BookingStatus,
    FeedbackStatus,
    PaymentRecordStatus,
    PaymentStatus,
    UserRole,
)
from messmate.models.feedback import Feedback
from messmate.models.inventory import InventoryItem
from messmate.models.menu import MenuItem
from messmate.models.payment import Payment
from messmate.models.user import User


def _day(value: Any) -> str:
    # func.date() yields a date on PostgreSQL and a string on SQLite
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


class AnalyticsRepository:
    """Read-only aggregates across bookings, users, feedback and stock."""

    def __init__(self, db: Session):
        self.db = db

    def _scalar(self, stmt) -> Any:
        return self.db.scalar(stmt)

    # ==================== Counters ====================

    def count_students(self) -> int:
        return int(self._scalar(select(func.count(User.id)).where(User.role == UserRole.STUDENT)) or 0)

    def count_active_users(self, since: datetime) -> int:
        stmt = select(func.count(User.id)).where(User.is_active.is_(True), User.last_login >= since)
        return int(self._scalar(stmt) or 0)

    def count_bookings(self, date_from: date, date_to: date) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.booking_date >= date_from, Booking.booking_date <= date_to
        )
        return int(self._scalar(stmt) or 0)

    def revenue(self, date_from: date, date_to: date) -> Decimal:
        stmt = select(func.coalesce(func.sum(Booking.final_amount), 0)).where(
            Booking.payment_status == PaymentStatus.PAID,
            Booking.booking_date >= date_from,
            Booking.booking_date <= date_to,
        )
        return Decimal(str(self._scalar(stmt) or 0))

    def count_bookings_with_status(self, status: BookingStatus) -> int:
        return int(self._scalar(select(func.count(Booking.id)).where(Booking.status == status)) or 0)

    def count_pending_feedback(self) -> int:
        stmt = select(func.count(Feedback.id)).where(Feedback.status == FeedbackStatus.PENDING)
        return int(self._scalar(stmt) or 0)

    def count_pending_payments(self) -> int:
        stmt = select(func.count(Payment.id)).where(Payment.status == PaymentRecordStatus.PENDING)
        return int(self._scalar(stmt) or 0)

    def count_low_stock(self) -> int:
        stmt = select(func.count(InventoryItem.id)).where(
            InventoryItem.is_active.is_(True),
            InventoryItem.current_stock <= InventoryItem.minimum_stock,
        )
        return int(self._scalar(stmt) or 0)

    # ==================== Sales ====================

    def daily_sales(self, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Booking.booking_date,
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.final_amount), 0),
            )
            .where(
                Booking.payment_status == PaymentStatus.PAID,
                Booking.booking_date >= date_from,
                Booking.booking_date <= date_to,
            )
            .group_by(Booking.booking_date)
            .order_by(Booking.booking_date)
        )
        return [
            {"date": _day(day), "bookings": int(count), "revenue": float(total)}
            for day, count, total in self.db.execute(stmt).all()
        ]

    def top_menu_items(self, date_from: date, date_to: date, limit: int = 5) -> List[Dict[str, Any]]:
        revenue = func.coalesce(func.sum(Booking.final_amount), 0)
        stmt = (
            select(
                MenuItem.id,
                MenuItem.name,
                MenuItem.meal_type,
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.quantity), 0),
                revenue,
            )
            .join(MenuItem, Booking.menu_item_id == MenuItem.id)
            .where(
                Booking.payment_status == PaymentStatus.PAID,
                Booking.booking_date >= date_from,
                Booking.booking_date <= date_to,
            )
            .group_by(MenuItem.id, MenuItem.name, MenuItem.meal_type)
            .order_by(revenue.desc())
            .limit(limit)
        )
        return [
            {
                "menu_item_id": item_id,
                "name": name,
                "meal_type": meal_type.value if hasattr(meal_type, "value") else meal_type,
                "bookings": int(count),
                "quantity": int(quantity),
                "revenue": float(total),
            }
            for item_id, name, meal_type, count, quantity, total in self.db.execute(stmt).all()
        ]

    def meal_type_distribution(self, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Booking.meal_type,
                func.count(Booking.id),
                func.coalesce(func.sum(Booking.final_amount), 0),
            )
            .where(
                Booking.payment_status == PaymentStatus.PAID,
                Booking.booking_date >= date_from,
                Booking.booking_date <= date_to,
            )
            .group_by(Booking.meal_type)
        )
        return [
            {
                "meal_type": meal_type.value if hasattr(meal_type, "value") else meal_type,
                "bookings": int(count),
                "revenue": float(total),
            }
            for meal_type, count, total in self.db.execute(stmt).all()
        ]

    # ==================== Users ====================

    def registrations_per_day(self, since: datetime) -> List[Dict[str, Any]]:
        day = func.date(User.created_at)
        stmt = (
            select(day, func.count(User.id))
            .where(User.created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return [{"date": _day(d), "registrations": int(c)} for d, c in self.db.execute(stmt).all()]

    def role_counts(self) -> Dict[str, int]:
        stmt = select(User.role, func.count(User.id)).group_by(User.role)
        return {UserRole(role).value: int(count) for role, count in self.db.execute(stmt).all()}

    def top_spenders(self, limit: int = 10) -> List[Dict[str, Any]]:
        stmt = (
            select(User)
            .where(User.role == UserRole.STUDENT, User.total_spent > 0)
            .order_by(User.total_spent.desc())
            .limit(limit)
        )
        return [
            {
                "user_id": u.id,
                "name": u.name,
                "email": u.email,
                "student_id": u.student_id,
                "total_spent": float(u.total_spent),
                "total_bookings": u.total_bookings,
            }
            for u in self.db.scalars(stmt).all()
        ]

    # ==================== Attendance ====================

    def attendance_by_meal_type(self, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        def status_sum(*statuses: BookingStatus):
            return func.coalesce(func.sum(case((Booking.status.in_(statuses), 1), else_=0)), 0)

        stmt = (
            select(
                Booking.meal_type,
                func.count(Booking.id),
                status_sum(BookingStatus.SERVED, BookingStatus.COMPLETED),
                status_sum(BookingStatus.NO_SHOW),
                status_sum(BookingStatus.CANCELLED),
            )
            .where(Booking.booking_date >= date_from, Booking.booking_date <= date_to)
            .group_by(Booking.meal_type)
        )
        rows = []
        for meal_type, total, attended, no_shows, cancelled in self.db.execute(stmt).all():
            rows.append(
                {
                    "meal_type": meal_type.value if hasattr(meal_type, "value") else meal_type,
                    "total": int(total),
                    "attended": int(attended),
                    "no_shows": int(no_shows),
                    "cancelled": int(cancelled),
                }
            )
        return rows
