from datetime import timedelta
from decimal import Decimal

from messmate.models import utcnow
from messmate.models.enums import MealType
from tests.conftest import make_menu_item


def _payload(**overrides):
    body = {
        "date": utcnow().date().isoformat(),
        "meal_type": "breakfast",
        "name": "Poha",
        "price": "40.00",
        "discount": "10",
        "items": [{"name": "Poha", "icon": "bowl"}, {"name": "Tea"}],
    }
    body.update(overrides)
    return body


class TestMenuItemModel:
    def test_effective_price(self, db_session):
        item = make_menu_item(db_session, price=Decimal("99.99"), discount=Decimal("15"))
        assert item.effective_price == Decimal("84.99")

    def test_availability_window(self, db_session):
        now = utcnow()
        item = make_menu_item(
            db_session,
            available_from=now - timedelta(hours=1),
            available_until=now + timedelta(hours=1),
            current_quantity=3,
        )

        assert item.check_availability(3, now=now)
        assert not item.check_availability(4, now=now)
        assert not item.check_availability(1, now=now + timedelta(hours=2))


class TestMenuRoutes:
    def test_admin_creates_item_and_everyone_is_told(self, client, admin_headers, notifier):
        response = client.post("/api/menu/", json=_payload(), headers=admin_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["effective_price"] == 36.0
        assert data["current_quantity"] == 100
        assert data["max_quantity"] == 100
        assert [i["name"] for i in data["items"]] == ["Poha", "Tea"]
        event = notifier.named("menu_update")[0]
        assert event[0] == "all"
        assert event[3]["action"] == "created"

    def test_duplicate_name_for_same_slot(self, client, admin_headers):
        client.post("/api/menu/", json=_payload(), headers=admin_headers)

        duplicate = client.post("/api/menu/", json=_payload(), headers=admin_headers)
        template = client.post("/api/menu/", json=_payload(is_template=True), headers=admin_headers)

        assert duplicate.status_code == 400
        assert template.status_code == 201

    def test_window_must_be_ordered(self, client, admin_headers):
        now = utcnow()
        response = client.post(
            "/api/menu/",
            json=_payload(
                available_from=now.isoformat(),
                available_until=(now - timedelta(hours=1)).isoformat(),
            ),
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_students_cannot_create(self, client, student_headers):
        assert client.post("/api/menu/", json=_payload(), headers=student_headers).status_code == 403

    def test_public_listing_and_filters(self, client, db_session):
        make_menu_item(db_session, meal_type=MealType.BREAKFAST, name="Idli")
        make_menu_item(db_session, meal_type=MealType.LUNCH, name="Thali")
        make_menu_item(db_session, meal_type=MealType.DINNER, name="Roti", is_available=False)

        everything = client.get("/api/menu/").json()
        lunch = client.get("/api/menu/?meal_type=lunch").json()
        available = client.get("/api/menu/?available=true").json()

        assert everything["pagination"]["total"] == 3
        assert [i["name"] for i in lunch["data"]] == ["Thali"]
        assert available["pagination"]["total"] == 2

    def test_today_groups_by_meal(self, client, db_session):
        make_menu_item(db_session, meal_type=MealType.BREAKFAST, name="Idli")
        make_menu_item(db_session, meal_type=MealType.DINNER, name="Roti")
        make_menu_item(db_session, date=utcnow().date() + timedelta(days=1), name="Tomorrow")

        data = client.get("/api/menu/today").json()["data"]

        assert [i["name"] for i in data["breakfast"]] == ["Idli"]
        assert data["lunch"] == []
        assert [i["name"] for i in data["dinner"]] == ["Roti"]

    def test_update_and_toggle_availability(self, client, admin_headers, menu_item, notifier):
        updated = client.put(f"/api/menu/{menu_item.id}", json={"price": "120"}, headers=admin_headers)
        toggled = client.patch(
            f"/api/menu/{menu_item.id}/availability", json={"is_available": False}, headers=admin_headers
        )

        assert updated.json()["data"]["price"] == 120.0
        assert toggled.json()["data"]["is_available"] is False
        assert [e[3]["action"] for e in notifier.named("menu_update")] == ["updated", "availability"]

    def test_quantity_cannot_exceed_max(self, client, admin_headers, menu_item):
        response = client.put(f"/api/menu/{menu_item.id}", json={"current_quantity": 101}, headers=admin_headers)
        assert response.status_code == 400

    def test_delete(self, client, admin_headers, menu_item):
        assert client.delete(f"/api/menu/{menu_item.id}", headers=admin_headers).status_code == 200
        response = client.get(f"/api/menu/{menu_item.id}")
        assert response.status_code == 404
        assert response.json()["error"] == "RESOURCE_NOT_FOUND"
