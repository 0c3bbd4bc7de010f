from decimal import Decimal

import pytest
from sqlalchemy import func, select

from messmate.core.exceptions import InsufficientBalanceError, InsufficientQuantityError, InvalidStateError
from messmate.db.session import SessionLocal
from messmate.models import Booking, MenuItem, User, WalletTransaction
from messmate.models.enums import BookingStatus, MealType, TransactionType
from messmate.services.booking_service import BookingService
from tests.conftest import auth_header, make_menu_item


def _book(client, headers, menu_item_id, quantity=1):
    return client.post(
        "/api/bookings/", json={"menu_item_id": menu_item_id, "quantity": quantity}, headers=headers
    )


def _count(session, model):
    return session.scalar(select(func.count()).select_from(model))


class TestCreateBooking:
    def test_debits_wallet_and_takes_portions(self, client, db_session, student, student_headers, menu_item, notifier):
        response = _book(client, student_headers, menu_item.id, quantity=2)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        booking = body["data"]
        assert booking["booking_id"].startswith("BK")
        assert len(booking["booking_id"]) == 20
        assert booking["final_amount"] == 200.0
        assert booking["total_amount"] == 200.0
        assert booking["discount"] == 0.0
        assert booking["payment_status"] == "paid"
        assert booking["payment_method"] == "wallet"
        assert booking["status"] == "pending"
        assert booking["qr_url"].startswith("data:image/png;base64,")

        db_session.expire_all()
        assert db_session.get(User, student.id).wallet_balance == Decimal("300.00")
        item = db_session.get(MenuItem, menu_item.id)
        assert item.current_quantity == 98
        assert item.total_orders == 2

        debit = db_session.scalars(select(WalletTransaction)).one()
        assert debit.type == TransactionType.DEBIT
        assert debit.transaction_id == booking["booking_id"]
        assert booking["booking_id"] in debit.description

        assert [(e[0], e[1]) for e in notifier.named("booking_update")] == [("role", "admin")]
        assert notifier.named("notification")[0][1] == student.id

    def test_applies_discount(self, client, db_session, student_headers):
        item = make_menu_item(db_session, name="Special", price=Decimal("80.00"), discount=Decimal("25"))

        booking = _book(client, student_headers, item.id, quantity=3).json()["data"]

        assert booking["item_price"] == 60.0
        assert booking["total_amount"] == 240.0
        assert booking["final_amount"] == 180.0
        assert booking["discount"] == 60.0

    def test_insufficient_balance_leaves_everything_untouched(self, client, db_session, other_student, menu_item):
        response = _book(client, auth_header(other_student), menu_item.id)

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_BALANCE"
        db_session.expire_all()
        assert db_session.get(User, other_student.id).wallet_balance == Decimal("50.00")
        assert db_session.get(MenuItem, menu_item.id).current_quantity == 100
        assert _count(db_session, Booking) == 0

    def test_insufficient_quantity(self, client, db_session, student_headers):
        item = make_menu_item(db_session, current_quantity=1)

        response = _book(client, student_headers, item.id, quantity=2)

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_QUANTITY"

    def test_unavailable_item(self, client, db_session, student_headers):
        item = make_menu_item(db_session, is_available=False)

        response = _book(client, student_headers, item.id)

        assert response.status_code == 400
        assert response.json()["error"] == "MENU_UNAVAILABLE"

    def test_quantity_out_of_range(self, client, student_headers, menu_item):
        assert _book(client, student_headers, menu_item.id, quantity=11).status_code == 400

    def test_unknown_menu_item(self, client, student_headers):
        response = _book(client, student_headers, "missing")
        assert response.status_code == 404

    def test_requires_authentication(self, client, menu_item):
        response = client.post("/api/bookings/", json={"menu_item_id": menu_item.id})
        assert response.status_code == 401
        assert response.json()["success"] is False


class TestBookingAtomicity:
    """The conditional updates are the last line of defence when the pre-checks race."""

    def test_lost_race_for_last_portion_rolls_back_debit(self, db_session, student, monkeypatch):
        item = make_menu_item(db_session, current_quantity=0)
        monkeypatch.setattr(MenuItem, "check_availability", lambda self, quantity=1, now=None: True)

        with pytest.raises(InsufficientQuantityError):
            BookingService(db_session).create_booking(student, item.id, quantity=1)

        db_session.expire_all()
        assert db_session.get(User, student.id).wallet_balance == Decimal("500.00")
        assert db_session.get(MenuItem, item.id).current_quantity == 0
        assert _count(db_session, Booking) == 0
        assert _count(db_session, WalletTransaction) == 0

    def test_lost_race_for_balance_keeps_portions(self, db_session, other_student, menu_item, monkeypatch):
        monkeypatch.setattr(User, "has_sufficient_balance", lambda self, amount: True)

        with pytest.raises(InsufficientBalanceError):
            BookingService(db_session).create_booking(other_student, menu_item.id, quantity=1)

        db_session.expire_all()
        assert db_session.get(User, other_student.id).wallet_balance == Decimal("50.00")
        assert db_session.get(MenuItem, menu_item.id).current_quantity == 100
        assert _count(db_session, Booking) == 0

    def test_sequential_bookings_cannot_oversell(self, db_session, student):
        item = make_menu_item(db_session, current_quantity=1)
        service = BookingService(db_session)

        service.create_booking(student, item.id)
        with pytest.raises(InsufficientQuantityError):
            service.create_booking(student, item.id)

        db_session.expire_all()
        assert db_session.get(MenuItem, item.id).current_quantity == 0
        assert _count(db_session, Booking) == 1

    def test_racing_cancellations_refund_once(self, db_session, student, admin, menu_item):
        booking = BookingService(db_session).create_booking(student, menu_item.id)

        first, second = SessionLocal(), SessionLocal()
        try:
            # both sessions see the booking as paid and still pending
            seen_by_first = first.get(Booking, booking.id)
            seen_by_second = second.get(Booking, booking.id)
            assert seen_by_first.payment_status == seen_by_second.payment_status == "paid"

            BookingService(first).cancel(first.get(User, student.id), booking.id, "changed plans")
            with pytest.raises(InvalidStateError):
                BookingService(second).update_status(
                    second.get(User, admin.id), booking.id, BookingStatus.CANCELLED
                )
        finally:
            first.close()
            second.close()

        db_session.expire_all()
        assert db_session.get(User, student.id).wallet_balance == Decimal("500.00")
        refunds = db_session.scalars(
            select(WalletTransaction).where(WalletTransaction.type == TransactionType.CREDIT)
        ).all()
        assert len(refunds) == 1
        assert db_session.get(Booking, booking.id).payment_status == "refunded"


class TestBookingLifecycle:
    @pytest.fixture()
    def booking(self, client, student_headers, menu_item):
        return _book(client, student_headers, menu_item.id).json()["data"]

    def _set_status(self, client, headers, booking_id, status, notes=None):
        payload = {"status": status}
        if notes:
            payload["admin_notes"] = notes
        return client.patch(f"/api/bookings/{booking_id}/status", json=payload, headers=headers)

    def test_confirm_sets_pickup_estimate(self, client, admin_headers, booking, notifier, student):
        response = self._set_status(client, admin_headers, booking["id"], "confirmed")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "confirmed"
        assert data["estimated_pickup_time"] is not None
        status_events = notifier.named("booking_status_update")
        assert status_events[0][:2] == ("user", student.id)

    def test_same_status_is_a_no_op(self, client, admin_headers, booking, notifier):
        response = self._set_status(client, admin_headers, booking["id"], "pending")

        assert response.status_code == 200
        assert response.json()["message"] == "Booking status unchanged"
        assert notifier.named("booking_status_update") == []

    def test_prepared_and_served_timestamps(self, client, admin_headers, booking):
        prepared = self._set_status(client, admin_headers, booking["id"], "prepared").json()["data"]
        assert prepared["preparation_start_time"] is not None
        assert prepared["preparation_end_time"] is not None

        served = self._set_status(client, admin_headers, booking["id"], "served").json()["data"]
        assert served["actual_pickup_time"] is not None

    def test_admin_cancel_refunds_final_amount(self, client, db_session, admin_headers, booking, student):
        response = self._set_status(client, admin_headers, booking["id"], "cancelled", "Kitchen closed")

        data = response.json()["data"]
        assert data["status"] == "cancelled"
        assert data["payment_status"] == "refunded"
        db_session.expire_all()
        assert db_session.get(User, student.id).wallet_balance == Decimal("500.00")
        refund = db_session.scalars(
            select(WalletTransaction).where(WalletTransaction.type == TransactionType.CREDIT)
        ).one()
        assert refund.amount == Decimal("100.00")

    def test_student_cancel_refunds_once(self, client, db_session, student_headers, booking, student):
        first = client.patch(f"/api/bookings/{booking['id']}/cancel", json={"reason": "Not hungry"}, headers=student_headers)
        second = client.patch(f"/api/bookings/{booking['id']}/cancel", headers=student_headers)

        assert first.status_code == 200
        assert first.json()["data"]["cancellation_reason"] == "Not hungry"
        assert second.status_code == 400
        assert second.json()["error"] == "INVALID_STATE"
        db_session.expire_all()
        assert db_session.get(User, student.id).wallet_balance == Decimal("500.00")

    def test_served_booking_cannot_be_cancelled(self, client, admin_headers, student_headers, booking):
        self._set_status(client, admin_headers, booking["id"], "served")

        response = client.delete(f"/api/bookings/{booking['id']}", headers=student_headers)

        assert response.status_code == 400

    def test_student_cannot_change_status(self, client, student_headers, booking):
        response = self._set_status(client, student_headers, booking["id"], "confirmed")
        assert response.status_code == 403
        assert response.json()["error"] == "AUTHORIZATION_FAILED"

    def test_other_student_cannot_read_booking(self, client, other_student, booking):
        response = client.get(f"/api/bookings/{booking['id']}", headers=auth_header(other_student))
        assert response.status_code == 403

    def test_read_by_public_booking_id(self, client, student_headers, booking):
        response = client.get(f"/api/bookings/{booking['booking_id']}", headers=student_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == booking["id"]

    def test_feedback_requires_served_booking(self, client, db_session, admin_headers, student_headers, booking, menu_item):
        early = client.post(f"/api/bookings/{booking['id']}/feedback", json={"rating": 4}, headers=student_headers)
        assert early.status_code == 400

        self._set_status(client, admin_headers, booking["id"], "served")
        response = client.post(
            f"/api/bookings/{booking['id']}/feedback",
            json={"rating": 4, "comment": "Tasty"},
            headers=student_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["feedback_rating"] == 4
        db_session.expire_all()
        item = db_session.get(MenuItem, menu_item.id)
        assert item.rating_count == 1
        assert item.rating_average == Decimal("4.00")


class TestBookingQueries:
    def test_my_bookings_are_paginated(self, client, student_headers, menu_item, other_student):
        for _ in range(3):
            _book(client, student_headers, menu_item.id)

        response = client.get("/api/bookings/my-bookings?page=1&limit=2", headers=student_headers)

        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        other = client.get("/api/bookings/my-bookings", headers=auth_header(other_student)).json()
        assert other["data"] == []

    def test_admin_list_requires_admin(self, client, student_headers, admin_headers):
        assert client.get("/api/bookings/", headers=student_headers).status_code == 403
        assert client.get("/api/bookings/", headers=admin_headers).status_code == 200

    def test_search_by_booking_id(self, client, admin_headers, student_headers, menu_item):
        booking = _book(client, student_headers, menu_item.id).json()["data"]
        _book(client, student_headers, menu_item.id)

        response = client.get(f"/api/bookings/search?q={booking['booking_id']}", headers=admin_headers)

        data = response.json()["data"]
        assert [b["booking_id"] for b in data] == [booking["booking_id"]]

    def test_current_qr(self, client, student_headers, menu_item):
        assert client.get("/api/bookings/current-qr", headers=student_headers).status_code == 404
        booking = _book(client, student_headers, menu_item.id).json()["data"]

        data = client.get("/api/bookings/current-qr", headers=student_headers).json()["data"]

        assert data["booking_id"] == booking["booking_id"]
        assert '"bookingId"' in data["qr_data"]

    def test_quick_book_uses_todays_menu(self, client, student_headers, db_session):
        make_menu_item(db_session, meal_type=MealType.DINNER, name="Biryani", price=Decimal("120.00"))

        response = client.post("/api/bookings/quick-book", json={"meal_type": "dinner"}, headers=student_headers)

        assert response.status_code == 201
        assert response.json()["data"]["meal_type"] == "dinner"
        assert response.json()["data"]["final_amount"] == 120.0

    def test_quick_book_without_menu(self, client, student_headers):
        response = client.post("/api/bookings/quick-book", json={"meal_type": "breakfast"}, headers=student_headers)
        assert response.status_code == 404
