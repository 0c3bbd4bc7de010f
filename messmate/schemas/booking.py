"""Booking request and response schemas."""

from datetime import date as Date, datetime
from typing import Optional

from pydantic import Field

from messmate.models.enums import BookingStatus, MealType, PaymentMethod, PaymentStatus
from messmate.schemas.common import BaseSchema


class BookingCreate(BaseSchema):
    menu_item_id: str
    quantity: int = Field(1, ge=1, le=10)
    meal_type: Optional[MealType] = None
    booking_date: Optional[Date] = None
    meal_time: Optional[str] = Field(None, max_length=20)
    special_requests: Optional[str] = Field(None, max_length=500)


class QuickBookRequest(BaseSchema):
    meal_type: MealType
    quantity: int = Field(1, ge=1, le=10)


class BookingStatusUpdate(BaseSchema):
    status: BookingStatus
    admin_notes: Optional[str] = Field(None, max_length=500)


class BookingCancelRequest(BaseSchema):
    reason: Optional[str] = Field(None, max_length=500)


class BookingFeedbackRequest(BaseSchema):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class BookingUserSummary(BaseSchema):
    id: str
    name: str
    email: str
    student_id: Optional[str] = None


class BookingMenuSummary(BaseSchema):
    id: str
    name: str
    meal_type: MealType
    date: Date


class BookingResponse(BaseSchema):
    id: str
    booking_id: str
    user_id: str
    menu_item_id: str
    quantity: int
    meal_type: MealType
    booking_date: Date
    meal_time: Optional[str] = None
    special_requests: Optional[str] = None
    item_price: float
    total_amount: float
    discount: float
    final_amount: float
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    qr_url: Optional[str] = None
    qr_expires_at: Optional[datetime] = None
    estimated_pickup_time: Optional[datetime] = None
    preparation_start_time: Optional[datetime] = None
    preparation_end_time: Optional[datetime] = None
    actual_pickup_time: Optional[datetime] = None
    admin_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    feedback_rating: Optional[int] = None
    feedback_comment: Optional[str] = None
    user: Optional[BookingUserSummary] = None
    menu_item: Optional[BookingMenuSummary] = None
    created_at: datetime
    updated_at: datetime


class CurrentQRResponse(BaseSchema):
    booking_id: str
    qr_url: str
    qr_data: str
    qr_expires_at: datetime
    meal_type: MealType
    status: BookingStatus
