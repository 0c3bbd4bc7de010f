"""Notification data access."""

from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.notification import Notification
from messmate.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    resource_name = "Notification"

    def __init__(self, db: Session):
        super().__init__(Notification, db)

    def list_for_user(
        self, user_id: str, params: PaginationParams, unread_only: bool = False
    ) -> Tuple[List[Notification], int]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        return self.paginate(stmt.order_by(Notification.created_at.desc()), params)

    def recent_for_user(self, user_id: str, limit: int = 5) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    def unread_count(self, user_id: str) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        return int(self.db.scalar(stmt) or 0)

    def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
