from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from messmate.core.exceptions import InsufficientStockError
from messmate.db.session import SessionLocal
from messmate.models import InventoryAlert, InventoryItem, StockMovement, utcnow
from messmate.models.enums import AlertSeverity, AlertType
from messmate.services.inventory_service import InventoryService
from tests.conftest import make_inventory_item


def _consume(client, headers, item_id, quantity, **extra):
    return client.post(
        f"/api/inventory/{item_id}/consume-stock", json={"quantity": quantity, **extra}, headers=headers
    )


def _add(client, headers, item_id, quantity, **extra):
    return client.post(
        f"/api/inventory/{item_id}/add-stock", json={"quantity": quantity, **extra}, headers=headers
    )


class TestStockMovements:
    def test_add_stock_records_movement(self, client, admin, admin_headers, inventory_item):
        response = _add(client, admin_headers, inventory_item.id, "25.5", reason="Weekly order", reference="PO-7")

        data = response.json()["data"]
        assert data["item"]["current_stock"] == 75.5
        movement = data["movement"]
        assert movement["type"] == "purchase"
        assert (movement["previous_stock"], movement["new_stock"]) == (50.0, 75.5)
        assert movement["reference"] == "PO-7"
        assert movement["handled_by_id"] == admin.id
        assert data["new_alerts"] == []

    def test_add_stock_accepts_return(self, client, admin_headers, inventory_item):
        response = _add(client, admin_headers, inventory_item.id, 5, type="return")
        assert response.json()["data"]["movement"]["type"] == "return"

    def test_add_stock_rejects_outbound_type(self, client, admin_headers, inventory_item):
        assert _add(client, admin_headers, inventory_item.id, 5, type="usage").status_code == 400

    def test_consume_more_than_stock(self, client, db_session, admin_headers, inventory_item):
        response = _consume(client, admin_headers, inventory_item.id, 51)

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_STOCK"
        db_session.expire_all()
        assert db_session.get(InventoryItem, inventory_item.id).current_stock == Decimal("50")

    def test_withdrawals_from_two_sessions_cannot_overdraw(self, db_session):
        item = make_inventory_item(db_session, current_stock=Decimal("10"))

        first, second = SessionLocal(), SessionLocal()
        try:
            # both sessions load the item while 10 units are on the shelf
            assert first.get(InventoryItem, item.id).current_stock == second.get(InventoryItem, item.id).current_stock

            InventoryService(first).consume_stock(item.id, 6)
            with pytest.raises(InsufficientStockError):
                InventoryService(second).consume_stock(item.id, 6)
            InventoryService(second).add_stock(item.id, 3)
        finally:
            first.close()
            second.close()

        db_session.expire_all()
        assert db_session.get(InventoryItem, item.id).current_stock == Decimal("7")
        movements = db_session.scalars(
            select(StockMovement).where(StockMovement.item_id == item.id).order_by(StockMovement.created_at)
        ).all()
        assert [(m.previous_stock, m.new_stock) for m in movements] == [
            (Decimal("10"), Decimal("4")),
            (Decimal("4"), Decimal("7")),
        ]

    def test_consume_as_waste(self, client, admin_headers, inventory_item):
        response = _consume(client, admin_headers, inventory_item.id, 2, type="waste", reason="Spoiled")

        assert response.json()["data"]["movement"]["type"] == "waste"
        assert _consume(client, admin_headers, inventory_item.id, 2, type="purchase").status_code == 400

    def test_student_forbidden(self, client, student_headers, inventory_item):
        assert _consume(client, student_headers, inventory_item.id, 1).status_code == 403


class TestAlerts:
    def test_low_stock_alert_is_upserted(self, client, db_session, admin_headers, inventory_item, notifier):
        first = _consume(client, admin_headers, inventory_item.id, 45).json()["data"]
        second = _consume(client, admin_headers, inventory_item.id, 1).json()["data"]

        assert [a["type"] for a in first["new_alerts"]] == ["low_stock"]
        assert first["new_alerts"][0]["severity"] == "high"
        assert second["new_alerts"] == []
        assert first["item"]["stock_status"] == "critical"

        alerts = db_session.scalars(select(InventoryAlert)).all()
        assert len(alerts) == 1
        assert "4 kg" in alerts[0].message
        assert [e[:3] for e in notifier.named("inventory_alert")] == [("role", "admin", "inventory_alert")]

    def test_out_of_stock_is_critical(self, client, admin_headers, inventory_item):
        data = _consume(client, admin_headers, inventory_item.id, 50).json()["data"]

        assert [(a["type"], a["severity"]) for a in data["new_alerts"]] == [("out_of_stock", "critical")]
        assert data["item"]["stock_status"] == "out_of_stock"

    def test_acknowledged_alert_allows_a_new_one(self, client, db_session, admin_headers, inventory_item):
        alert = _consume(client, admin_headers, inventory_item.id, 45).json()["data"]["new_alerts"][0]

        ack = client.post(
            f"/api/inventory/{inventory_item.id}/alerts/{alert['id']}/acknowledge", headers=admin_headers
        ).json()["data"]
        again = _consume(client, admin_headers, inventory_item.id, 1).json()["data"]

        assert ack["acknowledged"] is True
        assert ack["acknowledged_by_id"] is not None
        assert [a["type"] for a in again["new_alerts"]] == ["low_stock"]

    def test_acknowledge_wrong_item(self, client, db_session, admin_headers, inventory_item):
        other = make_inventory_item(db_session, item_code="OIL01", item_name="Oil")
        alert = _consume(client, admin_headers, inventory_item.id, 45).json()["data"]["new_alerts"][0]

        response = client.post(f"/api/inventory/{other.id}/alerts/{alert['id']}/acknowledge", headers=admin_headers)

        assert response.status_code == 404

    def test_expiry_severity(self, db_session):
        service = InventoryService(db_session)
        today = utcnow().date()
        soon = make_inventory_item(db_session, item_code="MILK", expiry_date=today + timedelta(days=2))
        later = make_inventory_item(db_session, item_code="CURD", expiry_date=today + timedelta(days=6))
        safe = make_inventory_item(db_session, item_code="SALT", expiry_date=today + timedelta(days=30))

        assert [(a.type, a.severity) for a in service.check_and_create_alerts(soon)] == [
            (AlertType.EXPIRY_WARNING, AlertSeverity.HIGH)
        ]
        assert [(a.type, a.severity) for a in service.check_and_create_alerts(later)] == [
            (AlertType.EXPIRY_WARNING, AlertSeverity.MEDIUM)
        ]
        assert service.check_and_create_alerts(safe) == []

    def test_alerts_overview(self, client, db_session, admin_headers):
        make_inventory_item(db_session, item_code="LOW1", current_stock=Decimal("5"))
        make_inventory_item(db_session, item_code="NONE1", current_stock=Decimal("0"))
        make_inventory_item(db_session, item_code="EXP1", expiry_date=utcnow().date() + timedelta(days=1))

        data = client.get("/api/inventory/alerts", headers=admin_headers).json()["data"]

        assert [i["item_code"] for i in data["low_stock"]] == ["LOW1"]
        assert [i["item_code"] for i in data["out_of_stock"]] == ["NONE1"]
        assert [i["item_code"] for i in data["expiring_soon"]] == ["EXP1"]
        assert data["active_alerts"] == []


class TestInventoryCrud:
    def test_create_uppercases_code_and_rejects_duplicates(self, client, admin_headers, notifier):
        payload = {"item_name": "Milk", "item_code": "milk01", "unit": "l", "category": "dairy"}

        created = client.post("/api/inventory/", json=payload, headers=admin_headers)
        duplicate = client.post("/api/inventory/", json=payload, headers=admin_headers)

        assert created.status_code == 201
        assert created.json()["data"]["item_code"] == "MILK01"
        assert duplicate.status_code == 400
        assert duplicate.json()["error"] == "DUPLICATE_ENTRY"
        # created with zero stock
        assert [e[3].type.value for e in notifier.named("inventory_alert")] == ["out_of_stock"]

    def test_update_ignores_current_stock(self, client, admin_headers, inventory_item):
        response = client.put(
            f"/api/inventory/{inventory_item.id}",
            json={"unit_price": "90", "current_stock": "999"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["unit_price"] == 90.0
        assert data["current_stock"] == 50.0
        assert data["total_value"] == 4500.0

    def test_list_with_summary_and_filters(self, client, db_session, admin_headers, inventory_item):
        make_inventory_item(db_session, item_code="DAL01", item_name="Toor Dal", current_stock=Decimal("0"))

        body = client.get("/api/inventory/", headers=admin_headers).json()
        assert body["data"]["summary"] == {
            "total_items": 2,
            "low_stock": 0,
            "out_of_stock": 1,
            "total_value": 4000.0,
        }
        assert body["pagination"]["limit"] == 20

        filtered = client.get("/api/inventory/?stock_status=out_of_stock", headers=admin_headers).json()
        assert [i["item_code"] for i in filtered["data"]["items"]] == ["DAL01"]
        searched = client.get("/api/inventory/?search=rice", headers=admin_headers).json()
        assert [i["item_code"] for i in searched["data"]["items"]] == ["RICE01"]

    def test_detail_includes_movements(self, client, admin_headers, inventory_item):
        _add(client, admin_headers, inventory_item.id, 10)

        data = client.get(f"/api/inventory/{inventory_item.id}", headers=admin_headers).json()["data"]

        assert len(data["movements"]) == 1
        assert data["alerts"] == []

    def test_delete(self, client, admin_headers, inventory_item):
        assert client.delete(f"/api/inventory/{inventory_item.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/inventory/{inventory_item.id}", headers=admin_headers).status_code == 404
