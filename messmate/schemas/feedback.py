"""Feedback schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from messmate.models.enums import FeedbackPriority, FeedbackStatus, FeedbackType, Sentiment
from messmate.schemas.common import BaseSchema


class FeedbackCreate(BaseSchema):
    feedback_type: FeedbackType = FeedbackType.GENERAL
    category: Optional[str] = Field(None, max_length=50)
    title: Optional[str] = Field(None, max_length=150)
    comment: Optional[str] = Field(None, max_length=2000)
    rating_overall: int = Field(..., ge=1, le=5)
    rating_food_quality: Optional[int] = Field(None, ge=1, le=5)
    rating_service: Optional[int] = Field(None, ge=1, le=5)
    rating_cleanliness: Optional[int] = Field(None, ge=1, le=5)
    rating_value: Optional[int] = Field(None, ge=1, le=5)
    booking_id: Optional[str] = None
    menu_item_id: Optional[str] = None
    is_anonymous: bool = False


class FeedbackVoteRequest(BaseSchema):
    helpful: bool


class FeedbackRespondRequest(BaseSchema):
    response: str = Field(..., min_length=1, max_length=2000)


class FeedbackResolveRequest(BaseSchema):
    resolution_notes: Optional[str] = Field(None, max_length=2000)


class FeedbackResponse(BaseSchema):
    id: str
    feedback_id: str
    user_id: str
    booking_id: Optional[str] = None
    menu_item_id: Optional[str] = None
    feedback_type: FeedbackType
    category: Optional[str] = None
    title: Optional[str] = None
    comment: Optional[str] = None
    rating_overall: int
    rating_food_quality: Optional[int] = None
    rating_service: Optional[int] = None
    rating_cleanliness: Optional[int] = None
    rating_value: Optional[int] = None
    is_anonymous: bool
    sentiment: Sentiment
    sentiment_score: float
    status: FeedbackStatus
    priority: FeedbackPriority
    admin_response: Optional[str] = None
    responded_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    helpful_count: int
    not_helpful_count: int
    created_at: datetime
    updated_at: datetime
