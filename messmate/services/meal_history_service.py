"""
A student's past meals and attendance, read from their bookings.

A day counts towards attendance when it holds at least one booking that
was not cancelled; it counts as present when one of those bookings was
served or completed.
"""

import enum
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from messmate.core.exceptions import NotFoundError
from messmate.models.base import utcnow
from messmate.models.booking import Booking
from messmate.models.user import User
from messmate.repositories.booking_repository import EATEN_STATUSES, BookingRepository
from messmate.services.base_service import BaseService, track_performance

STREAK_LOOKBACK_DAYS = 365


class HistoryRange(str, enum.Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def days(self) -> int:
        return {"week": 7, "month": 30, "quarter": 90, "year": 365}[self.value]


def percentage(present: int, total: int) -> int:
    if total == 0:
        return 0
    return int((Decimal(present * 100) / total).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class MealHistoryService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.bookings = BookingRepository(db)

    def history(self, user: User, range_: HistoryRange = HistoryRange.MONTH) -> Dict[str, Any]:
        end = utcnow().date()
        start = end - timedelta(days=range_.days)
        meals = self.bookings.for_user_since(user.id, start)
        return {"meals": meals, "total": len(meals), "range": range_.value, "start_date": start, "end_date": end}

    def recent(self, user: User, limit: int = 5) -> List[Booking]:
        return self.bookings.recent_for_user(user.id, limit)

    def last_completed(self, user: User) -> Booking:
        booking = self.bookings.last_completed(user.id)
        if booking is None:
            raise NotFoundError("Completed meal")
        return booking

    @track_performance("attendance_summary")
    def attendance(self, user: User, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or utcnow().date()
        month_start = today.replace(day=1)
        week_start = today - timedelta(days=today.weekday())
        week_end = week_start + timedelta(days=6)
        since = min(month_start, week_start, today - timedelta(days=STREAK_LOOKBACK_DAYS))

        booked = defaultdict(int)
        attended = set()
        for day, status in self.bookings.attendance_rows(user.id, since, max(week_end, today)):
            booked[day] += 1
            if status in EATEN_STATUSES:
                attended.add(day)

        month_days = [d for d in booked if (d.year, d.month) == (today.year, today.month)]
        week_days = sorted(d for d in booked if d.isocalendar()[:2] == today.isocalendar()[:2])

        return {
            "this_month": self._period(month_days, attended),
            "this_week": self._period(week_days, attended),
            "streak": self._streak(attended, today),
            "weekly_data": [{"date": d, "attended": d in attended, "total": booked[d]} for d in week_days],
        }

    @staticmethod
    def _period(days: List[date], attended: set) -> Dict[str, int]:
        present = sum(1 for d in days if d in attended)
        return {"present": present, "total": len(days), "percentage": percentage(present, len(days))}

    @staticmethod
    def _streak(attended: set, today: date) -> int:
        # today may still be ahead of its meals
        day = today if today in attended else today - timedelta(days=1)
        streak = 0
        while day in attended:
            streak += 1
            day -= timedelta(days=1)
        return streak
