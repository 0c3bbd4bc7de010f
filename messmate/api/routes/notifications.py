"""In-app notifications. Users only ever see their own."""

from fastapi import APIRouter, Depends, Query

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.notification import (
    NotificationResponse,
    NotificationSettings,
    NotificationSettingsUpdate,
)
from messmate.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/")
def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    entries, total = notification_service.list(current_user.id, params, unread_only=unread)
    return SuccessResponse.create(
        data=[NotificationResponse.model_validate(n) for n in entries],
        pagination=pagination_meta(params, total),
    )


@router.get("/unread-count")
def unread_count(
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    return SuccessResponse.create(data={"count": notification_service.unread_count(current_user.id)})


@router.get("/recent")
def recent_notifications(
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    entries = notification_service.recent(current_user.id)
    return SuccessResponse.create(data=[NotificationResponse.model_validate(n) for n in entries])


@router.get("/settings")
def get_settings(
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    settings = notification_service.get_settings(current_user)
    return SuccessResponse.create(data=NotificationSettings.model_validate(settings))


@router.put("/settings")
def update_settings(
    payload: NotificationSettingsUpdate,
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    settings = notification_service.update_settings(current_user, payload.model_dump(exclude_none=True))
    return SuccessResponse.create(
        message="Notification settings updated", data=NotificationSettings.model_validate(settings)
    )


@router.patch("/mark-all-read")
def mark_all_read(
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    updated = notification_service.mark_all_read(current_user.id)
    return SuccessResponse.create(message="All notifications marked as read", data={"updated": updated})


@router.patch("/{notification_id}/read")
def mark_read(
    notification_id: str,
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    notification = notification_service.mark_read(current_user.id, notification_id)
    return SuccessResponse.create(
        message="Notification marked as read", data=NotificationResponse.model_validate(notification)
    )


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    current_user: User = Depends(deps.get_current_user),
    notification_service: NotificationService = Depends(deps.get_notification_service),
):
    notification_service.delete(current_user.id, notification_id)
    return SuccessResponse.create(message="Notification deleted")
