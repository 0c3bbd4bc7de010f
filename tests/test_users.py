from decimal import Decimal

from sqlalchemy import select

from messmate.models import User, WalletTransaction
from messmate.models.enums import TransactionType


class TestProfile:
    def test_update_own_profile_merges_preferences(self, client, db_session, student, student_headers):
        student.preferences = {"veg": True}
        db_session.commit()

        response = client.put(
            "/api/users/me",
            json={"phone": "9999999999", "preferences": {"spicy": False}},
            headers=student_headers,
        )

        data = response.json()["data"]
        assert data["phone"] == "9999999999"
        assert data["preferences"] == {"veg": True, "spicy": False}

    def test_student_cannot_change_role(self, client, student, student_headers):
        response = client.put(f"/api/users/{student.id}", json={"role": "admin"}, headers=student_headers)

        assert response.status_code == 403

    def test_student_cannot_read_other_user(self, client, other_student, student_headers):
        response = client.get(f"/api/users/{other_student.id}", headers=student_headers)
        assert response.status_code == 403

    def test_admin_can_update_flags(self, client, student, admin_headers):
        response = client.put(f"/api/users/{student.id}", json={"is_verified": True}, headers=admin_headers)

        assert response.json()["data"]["is_verified"] is True


class TestAdminUsers:
    def test_list_with_search_and_pagination(self, client, student, other_student, admin_headers):
        response = client.get("/api/users/?role=student&search=stu002", headers=admin_headers)

        body = response.json()
        assert [u["id"] for u in body["data"]] == [other_student.id]
        assert body["pagination"]["total"] == 1

    def test_list_is_admin_only(self, client, student_headers):
        assert client.get("/api/users/", headers=student_headers).status_code == 403

    def test_delete_deactivates(self, client, db_session, student, admin_headers):
        response = client.delete(f"/api/users/{student.id}", headers=admin_headers)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(User, student.id).is_active is False

    def test_admin_cannot_deactivate_self(self, client, admin, admin_headers):
        assert client.delete(f"/api/users/{admin.id}", headers=admin_headers).status_code == 403

    def test_wallet_add(self, client, db_session, student, admin_headers):
        response = client.post(
            f"/api/users/{student.id}/wallet/add",
            json={"amount": "150.50", "description": "Scholarship"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["user"]["wallet_balance"] == 650.5
        assert data["transaction"]["type"] == "credit"
        db_session.expire_all()
        entry = db_session.scalars(select(WalletTransaction)).one()
        assert entry.type == TransactionType.CREDIT
        assert entry.balance_after == Decimal("650.50")

    def test_wallet_add_rejects_non_positive_amount(self, client, student, admin_headers):
        response = client.post(f"/api/users/{student.id}/wallet/add", json={"amount": 0}, headers=admin_headers)
        assert response.status_code == 400

    def test_stats(self, client, student, student_headers, menu_item):
        client.post("/api/bookings/", json={"menu_item_id": menu_item.id}, headers=student_headers)

        data = client.get(f"/api/users/{student.id}/stats", headers=student_headers).json()["data"]

        assert data["total_bookings"] == 1
        assert data["total_spent"] == 100.0
        assert data["wallet_balance"] == 400.0
        assert data["bookings_by_status"] == {"pending": 1}
