"""Persisted in-app notifications."""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.core.exceptions import NotFoundError
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import NotificationType
from messmate.models.notification import Notification
from messmate.models.user import User
from messmate.repositories.notification_repository import NotificationRepository
from messmate.services.base_service import BaseService

SETTINGS_KEY = "notifications"
DEFAULT_SETTINGS = {
    "email": True,
    "push": True,
    "sms": False,
    "meal_reminders": True,
    "booking_confirmations": True,
    "payment_notifications": True,
}


class NotificationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.notifications = NotificationRepository(db)

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.SYSTEM,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        with self.transaction():
            return self.notifications.create(
                user_id=user_id, title=title, message=message, type=type, data=data
            )

    def list(
        self, user_id: str, params: PaginationParams, unread_only: bool = False
    ) -> Tuple[List[Notification], int]:
        return self.notifications.list_for_user(user_id, params, unread_only)

    def recent(self, user_id: str, limit: int = 5) -> List[Notification]:
        return self.notifications.recent_for_user(user_id, limit)

    def unread_count(self, user_id: str) -> int:
        return self.notifications.unread_count(user_id)

    def _owned(self, user_id: str, notification_id: str) -> Notification:
        notification = self.notifications.get(notification_id)
        # another user's notification is reported as missing
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification", notification_id)
        return notification

    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        notification = self._owned(user_id, notification_id)
        if not notification.is_read:
            with self.transaction():
                self.notifications.update(notification, {"is_read": True, "read_at": utcnow()})
        return notification

    def mark_all_read(self, user_id: str) -> int:
        with self.transaction():
            return self.notifications.mark_all_read(user_id)

    def delete(self, user_id: str, notification_id: str) -> None:
        notification = self._owned(user_id, notification_id)
        with self.transaction():
            self.notifications.delete(notification)

    # ==================== Settings ====================

    @staticmethod
    def get_settings(user: User) -> Dict[str, bool]:
        stored = (user.preferences or {}).get(SETTINGS_KEY) or {}
        return {key: bool(stored.get(key, default)) for key, default in DEFAULT_SETTINGS.items()}

    def update_settings(self, user: User, changes: Dict[str, Any]) -> Dict[str, bool]:
        """Merge ``changes`` over the stored settings; unknown keys are dropped."""
        merged = self.get_settings(user)
        merged.update({k: bool(v) for k, v in changes.items() if k in DEFAULT_SETTINGS and v is not None})
        with self.transaction():
            # JSON columns only notice reassignment
            user.preferences = {**(user.preferences or {}), SETTINGS_KEY: merged}
            self.db.flush()
        self._logger.info("Notification settings updated", extra={"settings_user_id": user.id})
        return merged
