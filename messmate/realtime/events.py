"""Socket.IO event names shared by the gateway and REST handlers."""

NOTIFICATION = "notification"
ADMIN_ANNOUNCEMENT = "admin_announcement"
BOOKING_UPDATE = "booking_update"
BOOKING_STATUS = "booking_status_update"
BOOKING_CONFIRMED = "booking_confirmed"
PAYMENT_STATUS = "payment_status"
MENU_UPDATE = "menu_update"
INVENTORY_ALERT = "inventory_alert"
EMERGENCY_ALERT = "emergency_alert"
ATTENDANCE_UPDATE = "attendance_update"
USER_STATUS_UPDATED = "user_status_updated"
USER_ONLINE = "user_online"
USER_OFFLINE = "user_offline"
SOCKET_ERROR = "socket_error"
JOINED_ROOM = "joined_room"
LEFT_ROOM = "left_room"

ADMIN_ROOM = "role_admin"


def user_room(user_id: str) -> str:
    return f"user_{user_id}"


def role_room(role: str) -> str:
    return f"role_{role}"
