from messmate.repositories.analytics_repository import AnalyticsRepository
from messmate.repositories.base_repository import BaseRepository
from messmate.repositories.booking_repository import BookingRepository
from messmate.repositories.feedback_repository import FeedbackRepository
from messmate.repositories.inventory_repository import InventoryRepository
from messmate.repositories.menu_repository import MenuRepository
from messmate.repositories.notification_repository import NotificationRepository
from messmate.repositories.payment_repository import PaymentRepository
from messmate.repositories.user_repository import UserRepository, WalletTransactionRepository

__all__ = [
    "AnalyticsRepository",
    "BaseRepository",
    "BookingRepository",
    "FeedbackRepository",
    "InventoryRepository",
    "MenuRepository",
    "NotificationRepository",
    "PaymentRepository",
    "UserRepository",
    "WalletTransactionRepository",
]
