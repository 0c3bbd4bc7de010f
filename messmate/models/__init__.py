"""
ORM models. Importing this package registers every table on ``Base``.
"""

from messmate.models.base import Base, BaseModel, TimestampModel, utcnow
from messmate.models.booking import Booking
from messmate.models.feedback import Feedback, FeedbackVote
from messmate.models.inventory import InventoryAlert, InventoryItem, StockMovement
from messmate.models.menu import MenuItem
from messmate.models.notification import Notification
from messmate.models.payment import Payment
from messmate.models.report import Report
from messmate.models.user import User, WalletTransaction

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "utcnow",
    "User",
    "WalletTransaction",
    "MenuItem",
    "Booking",
    "InventoryItem",
    "StockMovement",
    "InventoryAlert",
    "Payment",
    "Feedback",
    "FeedbackVote",
    "Notification",
    "Report",
]
