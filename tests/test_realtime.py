import asyncio
import threading

import pytest
from socketio.exceptions import ConnectionRefusedError

from messmate.core.exceptions import AuthenticationError
from messmate.realtime import events
from messmate.realtime.gateway import RealtimeGateway, SocketUser
from messmate.realtime.notifier import RealtimeNotifier
from messmate.realtime.registry import ConnectionRegistry, RegistryClosedError

STUDENT = SocketUser(id="u1", name="Asha", role="student", student_id="STU001")
ADMIN = SocketUser(id="a1", name="Warden", role="admin")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class FakeServer:
    """Stands in for socketio.AsyncServer and records what it is asked to do."""

    def __init__(self):
        self.handlers = {}
        self.sessions = {}
        self.rooms = {}
        self.emitted = []

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def emit(self, event, data=None, to=None, skip_sid=None):
        self.emitted.append({"event": event, "data": data, "to": to, "skip_sid": skip_sid})

    async def enter_room(self, sid, room):
        self.rooms.setdefault(sid, set()).add(room)

    async def leave_room(self, sid, room):
        self.rooms.get(sid, set()).discard(room)

    async def save_session(self, sid, session):
        self.sessions[sid] = session

    async def get_session(self, sid):
        return self.sessions.get(sid, {})

    def named(self, event):
        return [e for e in self.emitted if e["event"] == event]


def _authenticate(token):
    users = {"student-token": STUDENT, "admin-token": ADMIN}
    if token not in users:
        raise AuthenticationError("Invalid token")
    return users[token]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    registry = ConnectionRegistry(rate_limit=3, window_seconds=60, clock=clock)
    registry.open()
    return registry


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def gateway(server, registry):
    return RealtimeGateway(server, registry, authenticate=_authenticate)


def connect(gateway, sid, token):
    asyncio.run(gateway.on_connect(sid, {}, {"token": token}))


# ==================== Registry ====================


def test_registry_refuses_connections_when_closed(clock):
    registry = ConnectionRegistry(clock=clock)

    with pytest.raises(RegistryClosedError):
        registry.add("s1", "u1", "Asha", "student")


def test_registry_close_drops_connections(registry):
    registry.add("s1", "u1", "Asha", "student")
    registry.add("s2", "u1", "Asha", "student")

    assert registry.sids_for_user("u1") == ["s1", "s2"]
    assert registry.online_user_ids() == ["u1"]

    registry.close()
    assert len(registry) == 0
    assert not registry.is_open


def test_rate_limit_resets_after_window(registry, clock):
    registry.add("s1", "u1", "Asha", "student")

    assert [registry.allow_event("s1") for _ in range(4)] == [True, True, True, False]

    clock.now = 61
    assert registry.allow_event("s1") is True


def test_unknown_sid_is_rate_limited(registry):
    assert registry.allow_event("missing") is False


# ==================== Gateway ====================


def test_connect_joins_user_and_role_rooms(gateway, server, registry):
    connect(gateway, "s1", "student-token")

    assert server.rooms["s1"] == {"user_u1", "role_student"}
    assert registry.get("s1").user_id == "u1"
    online = server.named(events.USER_ONLINE)[0]
    assert online["skip_sid"] == "s1"
    assert online["data"]["user_id"] == "u1"


@pytest.mark.parametrize("auth", [None, {}, {"token": "bogus"}])
def test_connect_without_valid_token_is_refused(gateway, registry, auth):
    with pytest.raises(ConnectionRefusedError):
        asyncio.run(gateway.on_connect("s1", {}, auth))

    assert len(registry) == 0


def test_connect_refused_while_registry_closed(gateway, registry):
    registry.close()

    with pytest.raises(ConnectionRefusedError):
        connect(gateway, "s1", "student-token")


def test_disconnect_announces_offline(gateway, server, registry):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_disconnect("s1", "client disconnect"))

    assert len(registry) == 0
    assert server.named(events.USER_OFFLINE)[0]["data"]["reason"] == "client disconnect"


def test_send_notification_goes_to_recipient_room(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_send_notification("s1", {"recipient_id": "a1", "notification": {"title": "Hi"}}))

    sent = server.named(events.NOTIFICATION)[0]
    assert sent["to"] == "user_a1"
    assert sent["data"]["title"] == "Hi"
    assert sent["data"]["from"]["id"] == "u1"
    assert sent["data"]["read"] is False


def test_new_booking_reaches_admins_and_confirms_sender(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_new_booking("s1", {"booking_id": "b1"}))

    assert server.named(events.BOOKING_UPDATE)[0]["to"] == events.ADMIN_ROOM
    confirmed = server.named(events.BOOKING_CONFIRMED)[0]
    assert confirmed["to"] == "s1"
    assert confirmed["data"]["booking_id"] == "b1"


def test_admin_events_are_forbidden_for_students(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_emergency_alert("s1", {"message": "fire"}))

    assert server.named(events.EMERGENCY_ALERT) == []
    error = server.named(events.SOCKET_ERROR)[0]
    assert error["to"] == "s1"
    assert error["data"]["code"] == "FORBIDDEN"


def test_admin_broadcast_skips_sender(gateway, server):
    connect(gateway, "s9", "admin-token")

    asyncio.run(gateway.on_admin_broadcast("s9", {"message": "Mess closed tonight"}))

    broadcast = server.named(events.ADMIN_ANNOUNCEMENT)[0]
    assert broadcast["skip_sid"] == "s9"
    assert broadcast["data"]["type"] == "admin_announcement"


def test_events_over_the_limit_are_dropped(gateway, server):
    connect(gateway, "s1", "student-token")

    for _ in range(4):
        asyncio.run(gateway.on_payment_update("s1", {"amount": 10}))

    # each accepted update goes to the user room and the admin room
    assert len(server.named(events.PAYMENT_STATUS)) == 6
    assert server.named(events.SOCKET_ERROR)[0]["data"]["code"] == "RATE_LIMIT"


def test_unknown_role_broadcast_is_rejected(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_broadcast_to_role("s1", {"role": "chef", "message": {"text": "hi"}}))

    assert server.named(events.ADMIN_ANNOUNCEMENT) == []
    assert server.named(events.SOCKET_ERROR)[0]["data"]["code"] == "INVALID_PAYLOAD"


def test_join_and_leave_room(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_join_room("s1", "dining_hall"))
    assert "dining_hall" in server.rooms["s1"]

    asyncio.run(gateway.on_leave_room("s1", "dining_hall"))
    assert "dining_hall" not in server.rooms["s1"]
    assert server.named(events.LEFT_ROOM)[0]["to"] == "s1"


@pytest.mark.parametrize("room", ["role_admin", "user_a1"])
def test_reserved_rooms_of_others_are_forbidden(gateway, server, room):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_join_room("s1", room))

    assert room not in server.rooms["s1"]
    assert server.named(events.JOINED_ROOM) == []
    assert server.named(events.SOCKET_ERROR)[0]["data"]["code"] == "FORBIDDEN"


def test_own_reserved_rooms_can_be_rejoined(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_leave_room("s1", "role_student"))
    asyncio.run(gateway.on_join_room("s1", "role_student"))

    assert "role_student" in server.rooms["s1"]
    assert server.named(events.SOCKET_ERROR) == []


def test_room_requests_count_against_rate_limit(gateway, server):
    connect(gateway, "s1", "student-token")

    for n in range(4):
        asyncio.run(gateway.on_join_room("s1", f"table_{n}"))

    assert len(server.named(events.JOINED_ROOM)) == 3
    assert server.named(events.SOCKET_ERROR)[0]["data"]["code"] == "RATE_LIMIT"


def test_mark_attendance_reaches_admins(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_mark_attendance("s1", {"meal_type": "lunch"}))

    update = server.named(events.ATTENDANCE_UPDATE)[0]
    assert update["to"] == events.ADMIN_ROOM
    assert update["data"]["meal_type"] == "lunch"
    assert update["data"]["user"] == {"id": "u1", "name": "Asha", "student_id": "STU001"}
    assert update["data"]["type"] == "attendance_marked"


def test_user_status_is_broadcast_to_others(gateway, server):
    connect(gateway, "s1", "student-token")

    asyncio.run(gateway.on_update_user_status("s1", {"status": "away"}))
    asyncio.run(gateway.on_update_user_status("s1", {}))

    [update] = server.named(events.USER_STATUS_UPDATED)
    assert update["skip_sid"] == "s1"
    assert (update["data"]["user_id"], update["data"]["status"]) == ("u1", "away")
    assert server.named(events.SOCKET_ERROR)[0]["data"]["code"] == "INVALID_PAYLOAD"


def test_token_check_runs_off_the_event_loop(server, registry):
    loop_threads = []

    def authenticate(token):
        loop_threads.append(threading.get_ident())
        return STUDENT

    gateway = RealtimeGateway(server, registry, authenticate=authenticate)
    asyncio.run(gateway.on_connect("s1", {}, {"token": "student-token"}))

    assert loop_threads and loop_threads[0] != threading.get_ident()


# ==================== Notifier ====================


def test_notifier_targets_rooms(server):
    notifier = RealtimeNotifier(server)

    asyncio.run(notifier.to_user("u1", events.NOTIFICATION, {"title": "x"}))
    asyncio.run(notifier.to_role("admin", events.BOOKING_UPDATE, {"action": "created"}))
    asyncio.run(notifier.to_all(events.MENU_UPDATE, {"action": "deleted"}))

    assert [e["to"] for e in server.emitted] == ["user_u1", "role_admin", None]
