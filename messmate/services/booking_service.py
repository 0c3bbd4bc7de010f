"""
Booking creation and lifecycle.

``create_booking`` runs menu lookup, balance check, wallet debit, portion
decrement, stats update and QR generation inside one transaction. The
debit and the decrement are conditional updates, so two requests racing
for the last portion cannot both succeed, and a failure at any step
leaves no partial effect behind.
"""

import json
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.config import settings
from messmate.core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InsufficientQuantityError,
    InvalidStateError,
    MenuUnavailableError,
    NotFoundError,
    ValidationError,
)
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.booking import Booking
from messmate.models.enums import (
    BookingStatus,
    MealType,
    NotificationType,
    PaymentMethod,
    PaymentStatus,
)
from messmate.models.user import User
from messmate.repositories.booking_repository import BookingRepository
from messmate.repositories.menu_repository import MenuRepository
from messmate.repositories.user_repository import UserRepository
from messmate.services.base_service import BaseService, track_performance
from messmate.services.menu_service import MenuService, price_quote
from messmate.services.notification_service import NotificationService
from messmate.services.wallet_service import WalletService
from messmate.utils.qr import qr_data_url

MIN_QUANTITY = 1
MAX_QUANTITY = 10

FEEDBACK_ALLOWED = (BookingStatus.SERVED, BookingStatus.COMPLETED)


class BookingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.bookings = BookingRepository(db)
        self.menus = MenuRepository(db)
        self.users = UserRepository(db)
        self.menu_service = MenuService(db)
        self.wallet = WalletService(db)
        self.notifications = NotificationService(db)

    # ==================== Creation ====================

    @track_performance("create_booking")
    def create_booking(
        self,
        user: User,
        menu_item_id: str,
        quantity: int = 1,
        meal_type: Optional[MealType] = None,
        booking_date: Optional[date] = None,
        meal_time: Optional[str] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        if not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
            raise ValidationError(
                "Quantity must be between 1 and 10",
                field_errors={"quantity": [f"must be between {MIN_QUANTITY} and {MAX_QUANTITY}"]},
            )

        item = self.menus.get_or_404(menu_item_id)
        if not item.check_availability(quantity):
            if item.is_available and item.is_within_window() and item.current_quantity < quantity:
                raise InsufficientQuantityError(quantity, item.current_quantity)
            raise MenuUnavailableError()

        quote = price_quote(item, quantity)
        final_amount = quote["final_amount"]
        if not user.has_sufficient_balance(final_amount):
            raise InsufficientBalanceError(final_amount, user.wallet_balance)

        with self.transaction():
            booking = self.bookings.create(
                user_id=user.id,
                menu_item_id=item.id,
                quantity=quantity,
                meal_type=meal_type or item.meal_type,
                booking_date=booking_date or item.date,
                meal_time=meal_time,
                special_requests=special_requests,
                status=BookingStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                payment_method=PaymentMethod.WALLET,
                **quote,
            )
            if final_amount > 0:
                self.wallet.deduct_money(
                    user,
                    final_amount,
                    f"Meal booking {booking.booking_id}",
                    transaction_id=booking.booking_id,
                )
            booking.payment_status = PaymentStatus.PAID
            self.menu_service.reduce_quantity(item, quantity)
            self.users.record_booking_spend(user.id, final_amount)
            self._attach_qr(booking)
            self.notifications.notify(
                user.id,
                "Booking created",
                f"Your {MealType(booking.meal_type).value} booking {booking.booking_id} is placed.",
                NotificationType.BOOKING,
                {"booking_id": booking.id},
            )

        self.db.refresh(user)
        self._logger.info(
            "Booking created",
            extra={
                "booking_id": booking.booking_id,
                "booking_user_id": user.id,
                "menu_item_id": item.id,
                "quantity": quantity,
                "final_amount": float(final_amount),
            },
        )
        return booking

    def quick_book(self, user: User, meal_type: MealType, quantity: int = 1) -> Booking:
        """Book today's first available item for ``meal_type``."""
        item = self.menus.first_available(utcnow().date(), meal_type)
        if item is None:
            raise NotFoundError(f"Available {meal_type.value} menu for today")
        return self.create_booking(user, item.id, quantity=quantity, meal_type=meal_type)

    def _attach_qr(self, booking: Booking) -> None:
        now = utcnow()
        payload = json.dumps(
            {
                "bookingId": booking.booking_id,
                "userId": booking.user_id,
                "mealType": MealType(booking.meal_type).value,
                "timestamp": now.isoformat(),
            }
        )
        booking.qr_data = payload
        booking.qr_url = qr_data_url(payload)
        booking.qr_expires_at = now + timedelta(hours=settings.QR_VALIDITY_HOURS)
        self.db.flush()

    # ==================== Queries ====================

    def get_for(self, actor: User, booking_id: str) -> Booking:
        """Look a booking up by row id or by its public ``BK...`` id."""
        booking = self.bookings.get(booking_id) or self.bookings.get_by_booking_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        self._ensure_owner_or_admin(actor, booking)
        return booking

    def list(
        self,
        params: PaginationParams,
        user_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        meal_type: Optional[MealType] = None,
        on_date: Optional[date] = None,
    ) -> Tuple[List[Booking], int]:
        return self.bookings.list(params, user_id, status, meal_type, on_date)

    def search(self, params: PaginationParams, **filters) -> Tuple[List[Booking], int]:
        return self.bookings.search(params, **filters)

    def current_qr(self, user: User) -> Booking:
        booking = self.bookings.current_with_qr(user.id, utcnow())
        if booking is None:
            raise NotFoundError("Active booking with QR code")
        return booking

    # ==================== Lifecycle ====================

    @track_performance("update_booking_status")
    def update_status(
        self,
        admin: User,
        booking_id: str,
        status: BookingStatus,
        admin_notes: Optional[str] = None,
    ) -> Tuple[Booking, bool]:
        """
        Move a booking to ``status``.

        Returns ``(booking, changed)``. Asking for the current status is a
        successful no-op. Apart from cancellation, which refuses terminal
        bookings, any target status is accepted.
        """
        booking = self.bookings.get_or_404(booking_id)
        if BookingStatus(booking.status) == status:
            return booking, False

        now = utcnow()
        with self.transaction():
            if status == BookingStatus.CANCELLED:
                self._cancel(booking, admin_notes or "Cancelled by admin", admin)
            else:
                booking.status = status
                if status == BookingStatus.CONFIRMED:
                    booking.estimated_pickup_time = now + timedelta(
                        minutes=settings.PICKUP_ESTIMATE_MINUTES
                    )
                elif status == BookingStatus.PREPARED:
                    booking.preparation_start_time = booking.preparation_start_time or now
                    booking.preparation_end_time = now
                elif status == BookingStatus.SERVED:
                    booking.actual_pickup_time = now

            booking.handled_by_id = admin.id
            if admin_notes:
                booking.admin_notes = admin_notes
            self.db.flush()
            self.notifications.notify(
                booking.user_id,
                "Booking update",
                f"Booking {booking.booking_id} is now {status.value}.",
                NotificationType.BOOKING,
                {"booking_id": booking.id, "status": status.value},
            )

        self._logger.info(
            "Booking status updated",
            extra={"booking_id": booking.booking_id, "status": status.value, "admin_id": admin.id},
        )
        return booking, True

    @track_performance("cancel_booking")
    def cancel(self, actor: User, booking_id: str, reason: Optional[str] = None) -> Booking:
        booking = self.bookings.get_or_404(booking_id)
        self._ensure_owner_or_admin(actor, booking)
        with self.transaction():
            self._cancel(booking, reason or "Cancelled by user", actor)
        return booking

    def _cancel(self, booking: Booking, reason: str, actor: User) -> None:
        if not booking.is_cancellable:
            raise InvalidStateError(
                "Cannot cancel this booking",
                {"status": BookingStatus(booking.status).value},
            )
        # the refund is only issued by the caller whose update claimed the row
        was_paid = self.bookings.mark_cancelled(booking.id, reason, actor.id, refund=True)
        if not was_paid and not self.bookings.mark_cancelled(booking.id, reason, actor.id, refund=False):
            raise InvalidStateError("Booking has already been closed", {"booking_id": booking.booking_id})
        self.db.refresh(booking)

        if was_paid and booking.final_amount > 0:
            owner = booking.user if booking.user is not None else self.users.get_or_404(booking.user_id)
            self.wallet.add_money(
                owner,
                booking.final_amount,
                f"Refund for cancelled booking {booking.booking_id}",
                transaction_id=f"REFUND_{booking.booking_id}",
            )

        self._logger.info(
            "Booking cancelled",
            extra={"booking_id": booking.booking_id, "refunded": was_paid, "actor_id": actor.id},
        )

    def add_feedback(self, user: User, booking_id: str, rating: int, comment: Optional[str] = None) -> Booking:
        booking = self.bookings.get_or_404(booking_id)
        if booking.user_id != user.id:
            raise AuthorizationError("Not authorized to add feedback to this booking")
        if BookingStatus(booking.status) not in FEEDBACK_ALLOWED:
            raise InvalidStateError("Feedback can only be added to served bookings")
        if booking.feedback_rating is not None:
            raise InvalidStateError("Feedback already submitted for this booking")
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5", field_errors={"rating": ["1..5"]})

        with self.transaction():
            booking.feedback_rating = rating
            booking.feedback_comment = comment
            booking.feedback_at = utcnow()
            item = self.menus.get(booking.menu_item_id)
            if item is not None:
                item.add_rating(rating)
            self.db.flush()
        return booking

    @staticmethod
    def _ensure_owner_or_admin(actor: User, booking: Booking) -> None:
        if not actor.is_admin and booking.user_id != actor.id:
            raise AuthorizationError("Not authorized to access this booking")
