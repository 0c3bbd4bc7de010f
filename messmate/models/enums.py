"""
Enumerations shared by models, schemas and services.
"""

import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"


class TransactionType(str, enum.Enum):
    """Wallet ledger entry direction."""
    CREDIT = "credit"
    DEBIT = "debit"


class MealType(str, enum.Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARED = "prepared"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_BOOKING_STATUSES


TERMINAL_BOOKING_STATUSES = frozenset(
    {
        BookingStatus.SERVED,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }
)


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    WALLET = "wallet"
    UPI = "upi"
    CASH = "cash"


class PaymentType(str, enum.Enum):
    WALLET_RECHARGE = "wallet_recharge"
    MEAL_BOOKING = "meal_booking"
    REFUND = "refund"
    OTHER = "other"


class PaymentRecordStatus(str, enum.Enum):
    """Lifecycle of a Payment row (distinct from a booking's payment status)."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class InventoryCategory(str, enum.Enum):
    GRAINS = "grains"
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    DAIRY = "dairy"
    MEAT = "meat"
    SPICES = "spices"
    BEVERAGES = "beverages"
    CLEANING = "cleaning"
    OTHER = "other"


class InventoryUnit(str, enum.Enum):
    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    PIECES = "pieces"
    PACKETS = "packets"
    BOXES = "boxes"


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "out_of_stock"
    CRITICAL = "critical"
    LOW = "low"
    NORMAL = "normal"
    OVERSTOCK = "overstock"


class MovementType(str, enum.Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    WASTE = "waste"
    ADJUSTMENT = "adjustment"
    RETURN = "return"


class AlertType(str, enum.Enum):
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    EXPIRY_WARNING = "expiry_warning"
    QUALITY_ISSUE = "quality_issue"
    OVERSTOCK = "overstock"


class AlertSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FeedbackType(str, enum.Enum):
    MEAL = "meal"
    SERVICE = "service"
    CLEANLINESS = "cleanliness"
    STAFF = "staff"
    GENERAL = "general"
    SUGGESTION = "suggestion"
    COMPLAINT = "complaint"


class FeedbackStatus(str, enum.Enum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class FeedbackPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Sentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class NotificationType(str, enum.Enum):
    BOOKING = "booking"
    PAYMENT = "payment"
    MENU = "menu"
    INVENTORY = "inventory"
    SYSTEM = "system"
    ANNOUNCEMENT = "announcement"


class ReportType(str, enum.Enum):
    USERS = "users"
    SALES = "sales"
    INVENTORY = "inventory"
    FEEDBACK = "feedback"


class ExportFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"
    PDF = "pdf"
