from decimal import Decimal

from messmate.models.enums import BookingStatus, MealType
from messmate.services.booking_service import BookingService
from tests.conftest import make_inventory_item, make_menu_item


def _seed_bookings(session, student, admin):
    lunch = make_menu_item(session, name="Thali", price=Decimal("100.00"))
    dinner = make_menu_item(session, meal_type=MealType.DINNER, name="Biryani", price=Decimal("150.00"))
    service = BookingService(session)

    served = service.create_booking(student, lunch.id)
    no_show = service.create_booking(student, lunch.id)
    cancelled = service.create_booking(student, dinner.id)
    service.create_booking(student, dinner.id)

    service.update_status(admin, served.id, BookingStatus.SERVED)
    service.update_status(admin, no_show.id, BookingStatus.NO_SHOW)
    service.cancel(student, cancelled.id)


def test_overview(client, db_session, student, admin, admin_headers):
    _seed_bookings(db_session, student, admin)
    make_inventory_item(db_session, item_code="LOW", current_stock=Decimal("15"))

    data = client.get("/api/analytics/overview", headers=admin_headers).json()["data"]

    assert data["total_students"] == 1
    assert data["today_bookings"] == 4
    assert data["weekly_bookings"] == 4
    # the cancelled booking was refunded and no longer counts
    assert data["today_revenue"] == 350.0
    assert data["pending_bookings"] == 1
    assert data["low_stock_items"] == 1
    assert data["pending_feedback"] == 0
    assert data["pending_payments"] == 0


def test_sales(client, db_session, student, admin, admin_headers):
    _seed_bookings(db_session, student, admin)

    data = client.get("/api/analytics/sales?period=30d", headers=admin_headers).json()["data"]

    assert data["period"] == "30d"
    assert data["total_bookings"] == 3
    assert data["total_revenue"] == 350.0
    assert [i["name"] for i in data["top_items"]] == ["Thali", "Biryani"]
    distribution = {row["meal_type"]: row["bookings"] for row in data["meal_type_distribution"]}
    assert distribution == {"lunch": 2, "dinner": 1}


def test_attendance(client, db_session, student, admin, admin_headers):
    _seed_bookings(db_session, student, admin)

    data = client.get("/api/analytics/attendance", headers=admin_headers).json()["data"]

    rows = {row["meal_type"]: row for row in data["by_meal_type"]}
    assert rows["lunch"]["attended"] == 1
    assert rows["lunch"]["no_shows"] == 1
    assert rows["lunch"]["attendance_rate"] == 50.0
    assert rows["dinner"]["cancelled"] == 1
    assert rows["dinner"]["attendance_rate"] == 0.0
    assert data["totals"] == {
        "total": 4,
        "attended": 1,
        "no_shows": 1,
        "cancelled": 1,
        "attendance_rate": 33.33,
    }


def test_users(client, db_session, student, other_student, admin, admin_headers):
    _seed_bookings(db_session, student, admin)

    data = client.get("/api/analytics/users?period=90d", headers=admin_headers).json()["data"]

    assert data["role_counts"] == {"student": 2, "admin": 1}
    assert sum(r["registrations"] for r in data["registrations"]) == 3
    assert [s["user_id"] for s in data["top_spenders"]] == [student.id]


def test_invalid_period(client, admin_headers):
    response = client.get("/api/analytics/sales?period=1y", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_admin_only(client, student_headers):
    assert client.get("/api/analytics/overview", headers=student_headers).status_code == 403
