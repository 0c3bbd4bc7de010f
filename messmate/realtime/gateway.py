"""
Socket.IO gateway.

Authenticates each connection with the bearer token sent in the
handshake ``auth`` payload, places the socket in its ``user_<id>`` and
``role_<role>`` rooms, and relays client events to the right rooms.
Nothing is persisted or replayed: a client that is offline misses the
events emitted meanwhile.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from socketio.exceptions import ConnectionRefusedError
from starlette.concurrency import run_in_threadpool

from messmate.core.exceptions import BaseAppException
from messmate.core.logging import get_logger
from messmate.db.session import SessionLocal
from messmate.models.base import utcnow
from messmate.models.enums import UserRole
from messmate.realtime import events
from messmate.realtime.registry import ConnectionRegistry, RegistryClosedError
from messmate.services.auth_service import AuthService

logger = get_logger(__name__)


@dataclass(frozen=True)
class SocketUser:
    id: str
    name: str
    role: str
    student_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def authenticate_token(token: str) -> SocketUser:
    """Resolve a handshake token to an active user using a short-lived session."""
    db = SessionLocal()
    try:
        user = AuthService(db).authenticate_token(token)
        return SocketUser(
            id=user.id,
            name=user.name,
            role=UserRole(user.role).value,
            student_id=user.student_id,
        )
    finally:
        db.close()


def _timestamp() -> str:
    return utcnow().isoformat()


class RealtimeGateway:
    def __init__(
        self,
        sio,
        registry: ConnectionRegistry,
        authenticate: Callable[[str], SocketUser] = authenticate_token,
    ):
        self.sio = sio
        self.registry = registry
        self.authenticate = authenticate
        self._register_handlers()

    def _register_handlers(self) -> None:
        handlers = {
            "connect": self.on_connect,
            "disconnect": self.on_disconnect,
            "join_room": self.on_join_room,
            "leave_room": self.on_leave_room,
            "send_notification": self.on_send_notification,
            "broadcast_to_role": self.on_broadcast_to_role,
            "new_booking": self.on_new_booking,
            "payment_update": self.on_payment_update,
            "mark_attendance": self.on_mark_attendance,
            "update_user_status": self.on_update_user_status,
            "menu_updated": self.on_menu_updated,
            "inventory_alert": self.on_inventory_alert,
            "admin_broadcast": self.on_admin_broadcast,
            "emergency_alert": self.on_emergency_alert,
        }
        for event, handler in handlers.items():
            self.sio.on(event, handler=handler)

    # ==================== Connection lifecycle ====================

    async def on_connect(self, sid: str, environ: Dict[str, Any], auth: Optional[Dict[str, Any]] = None):
        token = (auth or {}).get("token")
        if not token:
            raise ConnectionRefusedError("Authentication failed")
        try:
            user = await run_in_threadpool(self.authenticate, token)
        except BaseAppException as e:
            logger.warning("Socket authentication failed", extra={"sid": sid, "reason": e.message})
            raise ConnectionRefusedError("Authentication failed")

        try:
            self.registry.add(sid, user.id, user.name, user.role, user.student_id)
        except RegistryClosedError:
            raise ConnectionRefusedError("Server is not accepting connections")

        await self.sio.save_session(sid, {"user": user})
        await self.sio.enter_room(sid, events.user_room(user.id))
        await self.sio.enter_room(sid, events.role_room(user.role))
        await self.sio.emit(
            events.USER_ONLINE,
            {"user_id": user.id, "user_name": user.name, "user_role": user.role, "timestamp": _timestamp()},
            skip_sid=sid,
        )
        logger.info("Socket connected", extra={"sid": sid, "socket_user_id": user.id})

    async def on_disconnect(self, sid: str, reason: Optional[str] = None):
        connection = self.registry.remove(sid)
        if connection is None:
            return
        await self.sio.emit(
            events.USER_OFFLINE,
            {
                "user_id": connection.user_id,
                "user_name": connection.name,
                "user_role": connection.role,
                "timestamp": _timestamp(),
                "reason": str(reason) if reason is not None else None,
            },
            skip_sid=sid,
        )
        logger.info("Socket disconnected", extra={"sid": sid, "socket_user_id": connection.user_id})

    # ==================== Helpers ====================

    async def _user(self, sid: str) -> Optional[SocketUser]:
        session = await self.sio.get_session(sid)
        return session.get("user") if session else None

    async def _error(self, sid: str, code: str, message: str) -> None:
        await self.sio.emit(events.SOCKET_ERROR, {"code": code, "message": message}, to=sid)

    async def _guard(self, sid: str, admin_only: bool = False) -> Optional[SocketUser]:
        """Rate-limit and authorize a client event; returns the sender or None."""
        user = await self._user(sid)
        if user is None:
            await self._error(sid, "UNAUTHORIZED", "Not authenticated")
            return None
        if not self.registry.allow_event(sid):
            await self._error(sid, "RATE_LIMIT", "Too many realtime events; slow down.")
            return None
        if admin_only and not user.is_admin:
            await self._error(sid, "FORBIDDEN", "Admin privileges required")
            return None
        return user

    @staticmethod
    def _sender(user: SocketUser) -> Dict[str, Any]:
        return {"id": user.id, "name": user.name, "role": user.role}

    @staticmethod
    def _payload(data: Any) -> Dict[str, Any]:
        return dict(data) if isinstance(data, dict) else {"data": data}

    # ==================== Rooms ====================

    @staticmethod
    def _may_enter(user: SocketUser, room: str) -> bool:
        """Personal and role rooms are reserved for their owners."""
        if room.startswith("user_"):
            return room == events.user_room(user.id)
        if room.startswith("role_"):
            return room == events.role_room(user.role)
        return True

    async def _room_request(self, sid: str, room: Any) -> Optional[str]:
        user = await self._guard(sid)
        if user is None:
            return None
        if not isinstance(room, str) or not room:
            await self._error(sid, "INVALID_ROOM", "Room name is required")
            return None
        if not self._may_enter(user, room):
            await self._error(sid, "FORBIDDEN", "Not allowed to use this room")
            return None
        return room

    async def on_join_room(self, sid: str, room: Any):
        room = await self._room_request(sid, room)
        if room is None:
            return
        await self.sio.enter_room(sid, room)
        await self.sio.emit(events.JOINED_ROOM, {"room": room, "timestamp": _timestamp()}, to=sid)

    async def on_leave_room(self, sid: str, room: Any):
        room = await self._room_request(sid, room)
        if room is None:
            return
        await self.sio.leave_room(sid, room)
        await self.sio.emit(events.LEFT_ROOM, {"room": room, "timestamp": _timestamp()}, to=sid)

    # ==================== Relays ====================

    async def on_send_notification(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        data = self._payload(data)
        recipient = data.get("recipient_id")
        if not recipient:
            await self._error(sid, "INVALID_PAYLOAD", "recipient_id is required")
            return
        notification = {
            **self._payload(data.get("notification") or {}),
            "from": self._sender(user),
            "timestamp": _timestamp(),
            "read": False,
        }
        await self.sio.emit(events.NOTIFICATION, notification, to=events.user_room(recipient))

    async def on_broadcast_to_role(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        data = self._payload(data)
        role = data.get("role")
        if role not in {r.value for r in UserRole}:
            await self._error(sid, "INVALID_PAYLOAD", "Unknown role")
            return
        message = {
            **self._payload(data.get("message") or {}),
            "from": self._sender(user),
            "timestamp": _timestamp(),
            "type": "broadcast",
        }
        await self.sio.emit(
            events.ADMIN_ANNOUNCEMENT, message, to=events.role_room(role), skip_sid=sid
        )

    async def on_new_booking(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        data = self._payload(data)
        update = {
            **data,
            "user": {"id": user.id, "name": user.name, "student_id": user.student_id},
            "timestamp": _timestamp(),
            "type": "new_booking",
        }
        await self.sio.emit(events.BOOKING_UPDATE, update, to=events.ADMIN_ROOM)
        await self.sio.emit(
            events.BOOKING_CONFIRMED,
            {
                "booking_id": data.get("booking_id"),
                "message": "Your booking has been submitted successfully",
                "timestamp": _timestamp(),
            },
            to=sid,
        )

    async def on_payment_update(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        update = {
            **self._payload(data),
            "user": {"id": user.id, "name": user.name},
            "timestamp": _timestamp(),
            "type": "payment_update",
        }
        await self.sio.emit(events.PAYMENT_STATUS, update, to=events.user_room(user.id))
        await self.sio.emit(events.PAYMENT_STATUS, update, to=events.ADMIN_ROOM)

    async def on_mark_attendance(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        attendance = {
            **self._payload(data),
            "user": {"id": user.id, "name": user.name, "student_id": user.student_id},
            "timestamp": _timestamp(),
            "type": "attendance_marked",
        }
        await self.sio.emit(events.ATTENDANCE_UPDATE, attendance, to=events.ADMIN_ROOM)

    async def on_update_user_status(self, sid: str, data: Any):
        user = await self._guard(sid)
        if user is None:
            return
        status = self._payload(data).get("status")
        if not isinstance(status, str) or not status:
            await self._error(sid, "INVALID_PAYLOAD", "status is required")
            return
        await self.sio.emit(
            events.USER_STATUS_UPDATED,
            {"user_id": user.id, "user_name": user.name, "status": status, "timestamp": _timestamp()},
            skip_sid=sid,
        )

    # ==================== Admin-only ====================

    async def on_menu_updated(self, sid: str, data: Any):
        user = await self._guard(sid, admin_only=True)
        if user is None:
            return
        update = {
            **self._payload(data),
            "updated_by": {"id": user.id, "name": user.name},
            "timestamp": _timestamp(),
            "type": "menu_update",
        }
        await self.sio.emit(events.MENU_UPDATE, update, skip_sid=sid)

    async def on_inventory_alert(self, sid: str, data: Any):
        user = await self._guard(sid, admin_only=True)
        if user is None:
            return
        alert = {
            **self._payload(data),
            "alerted_by": {"id": user.id, "name": user.name},
            "timestamp": _timestamp(),
            "type": "inventory_alert",
        }
        await self.sio.emit(events.INVENTORY_ALERT, alert, to=events.ADMIN_ROOM)

    async def on_admin_broadcast(self, sid: str, data: Any):
        user = await self._guard(sid, admin_only=True)
        if user is None:
            return
        broadcast = {
            **self._payload(data),
            "from": {"id": user.id, "name": user.name},
            "timestamp": _timestamp(),
            "type": "admin_announcement",
        }
        await self.sio.emit(events.ADMIN_ANNOUNCEMENT, broadcast, skip_sid=sid)

    async def on_emergency_alert(self, sid: str, data: Any):
        user = await self._guard(sid, admin_only=True)
        if user is None:
            return
        alert = {
            **self._payload(data),
            "alerted_by": {"id": user.id, "name": user.name},
            "timestamp": _timestamp(),
            "type": "emergency",
            "priority": "critical",
        }
        await self.sio.emit(events.EMERGENCY_ALERT, alert)
