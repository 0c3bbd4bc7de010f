"""
FastAPI dependencies: database session, current user, pagination and
service factories.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from messmate.api import deps

    router = APIRouter()

    @router.get("/me")
    def read_me(current_user = Depends(deps.get_current_user)):
        return current_user
"""

from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from messmate.core.exceptions import AuthenticationError, AuthorizationError
from messmate.core.logging import user_id as user_id_var
from messmate.core.pagination import PaginationParams, normalize_pagination
from messmate.db.session import get_db
from messmate.models.user import User
from messmate.realtime.notifier import RealtimeNotifier
from messmate.realtime.server import notifier as realtime_notifier
from messmate.services.analytics_service import AnalyticsService
from messmate.services.auth_service import AuthService
from messmate.services.booking_service import BookingService
from messmate.services.feedback_service import FeedbackService
from messmate.services.inventory_service import InventoryService
from messmate.services.meal_history_service import MealHistoryService
from messmate.services.menu_service import MenuService
from messmate.services.notification_service import NotificationService
from messmate.services.payment_service import PaymentService
from messmate.services.report_service import ReportService
from messmate.services.user_service import UserService
from messmate.services.wallet_service import WalletService

bearer_scheme = HTTPBearer(auto_error=False)

INVENTORY_PAGE_SIZE = 20


# ------------------------------------------------------------------ #
# Current user
# ------------------------------------------------------------------ #
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user; 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized to access this route")
    user = AuthService(db).authenticate_token(credentials.credentials)
    user_id_var.set(user.id)
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AuthorizationError("Admin privileges required")
    return current_user


# ------------------------------------------------------------------ #
# Pagination
# ------------------------------------------------------------------ #
def get_pagination(
    page: Optional[int] = Query(None, description="Page number (1-based)"),
    limit: Optional[int] = Query(None, description="Items per page"),
) -> PaginationParams:
    return normalize_pagination(page, limit)


def get_inventory_pagination(
    page: Optional[int] = Query(None, description="Page number (1-based)"),
    limit: Optional[int] = Query(None, description="Items per page"),
) -> PaginationParams:
    return normalize_pagination(page, limit, default_limit=INVENTORY_PAGE_SIZE)


# ------------------------------------------------------------------ #
# Realtime
# ------------------------------------------------------------------ #
def get_notifier() -> RealtimeNotifier:
    return realtime_notifier


# ------------------------------------------------------------------ #
# Service factories
# ------------------------------------------------------------------ #
def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    return WalletService(db)


def get_menu_service(db: Session = Depends(get_db)) -> MenuService:
    return MenuService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_meal_history_service(db: Session = Depends(get_db)) -> MealHistoryService:
    return MealHistoryService(db)


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


__all__ = [
    "get_db",
    "get_current_user",
    "require_admin",
    "get_pagination",
    "get_inventory_pagination",
    "get_notifier",
    "get_auth_service",
    "get_user_service",
    "get_wallet_service",
    "get_menu_service",
    "get_booking_service",
    "get_meal_history_service",
    "get_inventory_service",
    "get_payment_service",
    "get_feedback_service",
    "get_notification_service",
    "get_analytics_service",
    "get_report_service",
]
