from datetime import date, timedelta
from decimal import Decimal

from messmate.models import Booking, utcnow
from messmate.models.enums import BookingStatus, MealType, PaymentStatus
from messmate.services.meal_history_service import MealHistoryService, percentage


def _book(session, user, item, day, status, meal_type=MealType.LUNCH, **extra):
    booking = Booking(
        user_id=user.id,
        menu_item_id=item.id,
        quantity=1,
        meal_type=meal_type,
        booking_date=day,
        item_price=Decimal("100.00"),
        total_amount=Decimal("100.00"),
        final_amount=Decimal("100.00"),
        status=status,
        payment_status=PaymentStatus.PAID,
        **extra,
    )
    session.add(booking)
    session.commit()
    return booking


class TestMealHistory:
    def test_history_ranges(self, client, db_session, student, student_headers, menu_item):
        today = utcnow().date()
        _book(db_session, student, menu_item, today, BookingStatus.SERVED, feedback_rating=4)
        _book(db_session, student, menu_item, today - timedelta(days=3), BookingStatus.PENDING)
        _book(db_session, student, menu_item, today - timedelta(days=20), BookingStatus.COMPLETED)
        _book(db_session, student, menu_item, today - timedelta(days=100), BookingStatus.SERVED)

        week = client.get("/api/meals/history?range=week", headers=student_headers).json()["data"]
        month = client.get("/api/meals/history", headers=student_headers).json()["data"]
        year = client.get("/api/meals/history?range=year", headers=student_headers).json()["data"]

        assert (week["total"], month["total"], year["total"]) == (2, 3, 4)
        assert month["range"] == "month"
        assert month["start_date"] == (today - timedelta(days=30)).isoformat()
        latest = week["meals"][0]
        assert latest["date"] == today.isoformat()
        assert latest["meal_name"] == "Veg Thali"
        assert [dish["name"] for dish in latest["menu_item"]["items"]] == ["Dal", "Rice"]
        assert (latest["price"], latest["user_rating"], latest["status"]) == (100.0, 4, "served")

    def test_unknown_range_is_rejected(self, client, student_headers):
        assert client.get("/api/meals/history?range=decade", headers=student_headers).status_code == 400

    def test_recent_is_limited_and_own(self, client, db_session, student, other_student, student_headers, menu_item):
        today = utcnow().date()
        for _ in range(6):
            _book(db_session, student, menu_item, today, BookingStatus.PENDING)
        _book(db_session, other_student, menu_item, today, BookingStatus.PENDING)

        default = client.get("/api/meals/recent", headers=student_headers).json()["data"]
        two = client.get("/api/meals/recent?limit=2", headers=student_headers).json()["data"]

        assert len(default) == 5
        assert len(two) == 2

    def test_last_completed(self, client, db_session, student, student_headers, menu_item, yesterday):
        assert client.get("/api/meals/last-completed", headers=student_headers).status_code == 404

        _book(db_session, student, menu_item, yesterday - timedelta(days=1), BookingStatus.COMPLETED)
        served = _book(db_session, student, menu_item, yesterday, BookingStatus.SERVED, meal_type=MealType.DINNER)
        _book(db_session, student, menu_item, utcnow().date(), BookingStatus.CONFIRMED)

        data = client.get("/api/meals/last-completed", headers=student_headers).json()["data"]

        assert data["booking_id"] == served.booking_id
        assert data["meal_type"] == "dinner"


class TestAttendance:
    # Wednesday; its ISO week runs from Monday 16 to Sunday 22
    TODAY = date(2026, 3, 18)

    def test_summary(self, db_session, student, menu_item):
        for day, status in [
            (date(2026, 2, 28), BookingStatus.SERVED),
            (date(2026, 3, 10), BookingStatus.SERVED),
            (date(2026, 3, 12), BookingStatus.CANCELLED),
            (date(2026, 3, 15), BookingStatus.NO_SHOW),
            (date(2026, 3, 16), BookingStatus.SERVED),
            (date(2026, 3, 16), BookingStatus.PENDING),
            (date(2026, 3, 17), BookingStatus.COMPLETED),
            (date(2026, 3, 18), BookingStatus.PENDING),
        ]:
            _book(db_session, student, menu_item, day, status)

        summary = MealHistoryService(db_session).attendance(student, today=self.TODAY)

        assert summary["this_month"] == {"present": 3, "total": 5, "percentage": 60}
        assert summary["this_week"] == {"present": 2, "total": 3, "percentage": 67}
        assert summary["streak"] == 2
        assert summary["weekly_data"] == [
            {"date": date(2026, 3, 16), "attended": True, "total": 2},
            {"date": date(2026, 3, 17), "attended": True, "total": 1},
            {"date": date(2026, 3, 18), "attended": False, "total": 1},
        ]

    def test_streak_includes_today_once_served(self, db_session, student, menu_item):
        for offset in range(3):
            _book(db_session, student, menu_item, self.TODAY - timedelta(days=offset), BookingStatus.SERVED)

        assert MealHistoryService(db_session).attendance(student, today=self.TODAY)["streak"] == 3

    def test_percentage_rounds_half_up(self):
        assert (percentage(1, 8), percentage(0, 0), percentage(2, 3)) == (13, 0, 67)

    def test_empty_summary_on_both_paths(self, client, student_headers):
        first = client.get("/api/attendance", headers=student_headers).json()["data"]
        second = client.get("/api/user/attendance", headers=student_headers).json()["data"]

        assert first == second
        assert first["this_month"] == {"present": 0, "total": 0, "percentage": 0}
        assert (first["streak"], first["weekly_data"]) == (0, [])

    def test_requires_login(self, client):
        assert client.get("/api/attendance").status_code == 401
