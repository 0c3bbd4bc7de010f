"""
Booking endpoints.

Realtime events go out as background tasks, so they are only emitted once
the request's transaction has committed.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.booking import Booking
from messmate.models.enums import BookingStatus, MealType, UserRole
from messmate.models.user import User
from messmate.realtime import events
from messmate.realtime.notifier import RealtimeNotifier
from messmate.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingFeedbackRequest,
    BookingResponse,
    BookingStatusUpdate,
    CurrentQRResponse,
    QuickBookRequest,
)
from messmate.schemas.common import SuccessResponse
from messmate.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _announce_new_booking(
    background_tasks: BackgroundTasks, notifier: RealtimeNotifier, booking: Booking
) -> BookingResponse:
    data = BookingResponse.model_validate(booking)
    background_tasks.add_task(
        notifier.to_role, UserRole.ADMIN.value, events.BOOKING_UPDATE, {"action": "created", "booking": data}
    )
    background_tasks.add_task(
        notifier.to_user,
        booking.user_id,
        events.NOTIFICATION,
        {
            "title": "Booking created",
            "message": f"Your booking {booking.booking_id} is placed.",
            "type": "booking",
            "data": {"booking_id": booking.id},
        },
    )
    return data


def _announce_status(
    background_tasks: BackgroundTasks, notifier: RealtimeNotifier, booking: Booking
) -> BookingResponse:
    data = BookingResponse.model_validate(booking)
    payload = {"booking_id": booking.booking_id, "status": data.status.value, "booking": data}
    background_tasks.add_task(notifier.to_user, booking.user_id, events.BOOKING_STATUS, payload)
    background_tasks.add_task(notifier.to_role, UserRole.ADMIN.value, events.BOOKING_UPDATE, payload)
    return data


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    booking = booking_service.create_booking(
        current_user,
        payload.menu_item_id,
        quantity=payload.quantity,
        meal_type=payload.meal_type,
        booking_date=payload.booking_date,
        meal_time=payload.meal_time,
        special_requests=payload.special_requests,
    )
    data = _announce_new_booking(background_tasks, notifier, booking)
    return SuccessResponse.create(message="Booking created successfully", data=data)


@router.post("/quick-book", status_code=status.HTTP_201_CREATED)
def quick_book(
    payload: QuickBookRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    booking = booking_service.quick_book(current_user, payload.meal_type, payload.quantity)
    data = _announce_new_booking(background_tasks, notifier, booking)
    return SuccessResponse.create(message="Booking created successfully", data=data)


@router.get("/my-bookings")
def my_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    meal_type: Optional[MealType] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    bookings, total = booking_service.list(params, current_user.id, booking_status, meal_type, on_date)
    return SuccessResponse.create(
        data=[BookingResponse.model_validate(b) for b in bookings],
        pagination=pagination_meta(params, total),
    )


@router.get("/search")
def search_bookings(
    q: Optional[str] = Query(None, description="Booking id, user name or email"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    params: PaginationParams = Depends(deps.get_pagination),
    admin: User = Depends(deps.require_admin),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    bookings, total = booking_service.search(
        params, query=q, status=booking_status, date_from=date_from, date_to=date_to
    )
    return SuccessResponse.create(
        data=[BookingResponse.model_validate(b) for b in bookings],
        pagination=pagination_meta(params, total),
    )


@router.get("/current-qr")
def current_qr(
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    booking = booking_service.current_qr(current_user)
    return SuccessResponse.create(data=CurrentQRResponse.model_validate(booking))


@router.get("/")
def list_bookings(
    user_id: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    meal_type: Optional[MealType] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    params: PaginationParams = Depends(deps.get_pagination),
    admin: User = Depends(deps.require_admin),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    bookings, total = booking_service.list(params, user_id, booking_status, meal_type, on_date)
    return SuccessResponse.create(
        data=[BookingResponse.model_validate(b) for b in bookings],
        pagination=pagination_meta(params, total),
    )


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    booking = booking_service.get_for(current_user, booking_id)
    return SuccessResponse.create(data=BookingResponse.model_validate(booking))


@router.patch("/{booking_id}/status")
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    booking_service: BookingService = Depends(deps.get_booking_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    booking, changed = booking_service.update_status(admin, booking_id, payload.status, payload.admin_notes)
    if not changed:
        return SuccessResponse.create(
            message="Booking status unchanged", data=BookingResponse.model_validate(booking)
        )
    data = _announce_status(background_tasks, notifier, booking)
    return SuccessResponse.create(message="Booking status updated successfully", data=data)


def _cancel(
    booking_id: str,
    reason: Optional[str],
    background_tasks: BackgroundTasks,
    current_user: User,
    booking_service: BookingService,
    notifier: RealtimeNotifier,
):
    booking = booking_service.cancel(current_user, booking_id, reason)
    data = _announce_status(background_tasks, notifier, booking)
    return SuccessResponse.create(message="Booking cancelled successfully", data=data)


@router.patch("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[BookingCancelRequest] = None,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    reason = payload.reason if payload else None
    return _cancel(booking_id, reason, background_tasks, current_user, booking_service, notifier)


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    return _cancel(booking_id, None, background_tasks, current_user, booking_service, notifier)


@router.post("/{booking_id}/feedback")
def booking_feedback(
    booking_id: str,
    payload: BookingFeedbackRequest,
    current_user: User = Depends(deps.get_current_user),
    booking_service: BookingService = Depends(deps.get_booking_service),
):
    booking = booking_service.add_feedback(current_user, booking_id, payload.rating, payload.comment)
    return SuccessResponse.create(
        message="Feedback submitted successfully", data=BookingResponse.model_validate(booking)
    )
