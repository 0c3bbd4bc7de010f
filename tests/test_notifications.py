from messmate.models.enums import NotificationType
from messmate.models.user import User
from messmate.services.notification_service import NotificationService
from tests.conftest import auth_header


def _seed(session, user, count):
    service = NotificationService(session)
    return [
        service.notify(user.id, f"Title {n}", f"Message {n}", NotificationType.SYSTEM)
        for n in range(count)
    ]


def test_list_unread_and_count(client, db_session, student, student_headers):
    notes = _seed(db_session, student, 3)
    client.patch(f"/api/notifications/{notes[0].id}/read", headers=student_headers)

    unread = client.get("/api/notifications/?unread=true", headers=student_headers).json()
    count = client.get("/api/notifications/unread-count", headers=student_headers).json()["data"]

    assert unread["pagination"]["total"] == 2
    assert count == {"count": 2}


def test_recent_returns_five_newest(client, db_session, student, student_headers):
    _seed(db_session, student, 7)

    data = client.get("/api/notifications/recent", headers=student_headers).json()["data"]

    assert len(data) == 5


def test_mark_all_read(client, db_session, student, student_headers):
    _seed(db_session, student, 4)

    response = client.patch("/api/notifications/mark-all-read", headers=student_headers)

    assert response.json()["data"] == {"updated": 4}
    assert client.get("/api/notifications/unread-count", headers=student_headers).json()["data"]["count"] == 0


def test_users_cannot_touch_others_notifications(client, db_session, student, other_student):
    note = _seed(db_session, student, 1)[0]
    headers = auth_header(other_student)

    assert client.patch(f"/api/notifications/{note.id}/read", headers=headers).status_code == 404
    assert client.delete(f"/api/notifications/{note.id}", headers=headers).status_code == 404
    assert client.get("/api/notifications/", headers=headers).json()["data"] == []


def test_delete(client, db_session, student, student_headers):
    note = _seed(db_session, student, 1)[0]

    assert client.delete(f"/api/notifications/{note.id}", headers=student_headers).status_code == 200
    assert client.get("/api/notifications/", headers=student_headers).json()["pagination"]["total"] == 0


def test_booking_creates_notification(client, student_headers, menu_item):
    client.post("/api/bookings/", json={"menu_item_id": menu_item.id}, headers=student_headers)

    data = client.get("/api/notifications/", headers=student_headers).json()["data"]

    assert [n["type"] for n in data] == ["booking"]
    assert data[0]["is_read"] is False


def test_settings_default_until_changed(client, student_headers):
    data = client.get("/api/notifications/settings", headers=student_headers).json()["data"]

    assert data == {
        "email": True,
        "push": True,
        "sms": False,
        "meal_reminders": True,
        "booking_confirmations": True,
        "payment_notifications": True,
    }


def test_settings_update_merges(client, db_session, student, student_headers):
    student.preferences = {"veg": True}
    db_session.commit()

    client.put("/api/notifications/settings", json={"sms": True}, headers=student_headers)
    response = client.put("/api/notifications/settings", json={"email": False}, headers=student_headers)

    data = response.json()["data"]
    assert (data["sms"], data["email"], data["push"]) == (True, False, True)
    db_session.expire_all()
    assert db_session.get(User, student.id).preferences["veg"] is True
    assert client.get("/api/notifications/settings", headers=student_headers).json()["data"] == data
