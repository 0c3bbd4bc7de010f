"""
Admin analytics: dashboard overview, sales, users and attendance.
"""

from datetime import timedelta
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from messmate.core.exceptions import ValidationError
from messmate.models.base import utcnow
from messmate.models.enums import BookingStatus
from messmate.repositories.analytics_repository import AnalyticsRepository
from messmate.services.base_service import BaseService, track_performance

PERIODS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "7d"


def period_days(period: str) -> int:
    try:
        return PERIODS[period]
    except KeyError:
        raise ValidationError(
            "Invalid period",
            field_errors={"period": [f"must be one of {', '.join(PERIODS)}"]},
        )


class AnalyticsService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.analytics = AnalyticsRepository(db)

    @staticmethod
    def _window(period: str) -> Tuple[Any, Any]:
        today = utcnow().date()
        return today - timedelta(days=period_days(period) - 1), today

    @track_performance("analytics_overview")
    def overview(self) -> Dict[str, Any]:
        now = utcnow()
        today = now.date()
        week_start = today - timedelta(days=6)
        month_start = today.replace(day=1)
        return {
            "total_students": self.analytics.count_students(),
            "active_users": self.analytics.count_active_users(now - timedelta(days=7)),
            "today_bookings": self.analytics.count_bookings(today, today),
            "weekly_bookings": self.analytics.count_bookings(week_start, today),
            "today_revenue": float(self.analytics.revenue(today, today)),
            "monthly_revenue": float(self.analytics.revenue(month_start, today)),
            "pending_bookings": self.analytics.count_bookings_with_status(BookingStatus.PENDING),
            "pending_feedback": self.analytics.count_pending_feedback(),
            "pending_payments": self.analytics.count_pending_payments(),
            "low_stock_items": self.analytics.count_low_stock(),
        }

    def sales(self, period: str = DEFAULT_PERIOD) -> Dict[str, Any]:
        date_from, date_to = self._window(period)
        daily = self.analytics.daily_sales(date_from, date_to)
        return {
            "period": period,
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
            "total_bookings": sum(row["bookings"] for row in daily),
            "total_revenue": round(sum(row["revenue"] for row in daily), 2),
            "daily_sales": daily,
            "top_items": self.analytics.top_menu_items(date_from, date_to),
            "meal_type_distribution": self.analytics.meal_type_distribution(date_from, date_to),
        }

    def users(self, period: str = DEFAULT_PERIOD) -> Dict[str, Any]:
        days = period_days(period)
        since = utcnow() - timedelta(days=days)
        return {
            "period": period,
            "registrations": self.analytics.registrations_per_day(since),
            "role_counts": self.analytics.role_counts(),
            "active_users": self.analytics.count_active_users(since),
            "top_spenders": self.analytics.top_spenders(),
        }

    def attendance(self, period: str = DEFAULT_PERIOD) -> Dict[str, Any]:
        """
        Per meal type turnout. The rate is attended over bookings that were
        not cancelled, as a percentage.
        """
        date_from, date_to = self._window(period)
        rows = self.analytics.attendance_by_meal_type(date_from, date_to)
        for row in rows:
            row["attendance_rate"] = self._rate(row["attended"], row["total"] - row["cancelled"])

        totals = {
            key: sum(row[key] for row in rows)
            for key in ("total", "attended", "no_shows", "cancelled")
        }
        totals["attendance_rate"] = self._rate(totals["attended"], totals["total"] - totals["cancelled"])
        return {
            "period": period,
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
            "by_meal_type": rows,
            "totals": totals,
        }

    @staticmethod
    def _rate(part: int, whole: int) -> float:
        return round(part * 100.0 / whole, 2) if whole > 0 else 0.0
