"""Notification schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from messmate.models.enums import NotificationType
from messmate.schemas.common import BaseSchema


class NotificationResponse(BaseSchema):
    id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool
    read_at: Optional[datetime] = None
    data: Optional[Dict[str, Any]] = None
    created_at: datetime


class NotificationSettings(BaseSchema):
    """Which channels and topics a user wants to hear about."""

    email: bool = True
    push: bool = True
    sms: bool = False
    meal_reminders: bool = True
    booking_confirmations: bool = True
    payment_notifications: bool = True


class NotificationSettingsUpdate(BaseSchema):
    email: Optional[bool] = None
    push: Optional[bool] = None
    sms: Optional[bool] = None
    meal_reminders: Optional[bool] = None
    booking_confirmations: Optional[bool] = None
    payment_notifications: Optional[bool] = None
