"""
Feedback and helpful-vote models.
"""

import secrets
import string
import time
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from messmate.models.base import TimestampModel, enum_column
from messmate.models.enums import FeedbackPriority, FeedbackStatus, FeedbackType, Sentiment

if TYPE_CHECKING:
    from messmate.models.user import User


def generate_feedback_id() -> str:
    rand = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(5))
    return f"FB{int(time.time() * 1000)}{rand}"


class Feedback(TimestampModel):
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating_overall >= 1 AND rating_overall <= 5", name="ck_feedback_rating_range"),
    )

    feedback_id: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True, default=generate_feedback_id
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    booking_id: Mapped[Optional[str]] = mapped_column(ForeignKey("bookings.id"))
    menu_item_id: Mapped[Optional[str]] = mapped_column(ForeignKey("menu_items.id"))

    feedback_type: Mapped[FeedbackType] = mapped_column(
        enum_column(FeedbackType), nullable=False, default=FeedbackType.GENERAL
    )
    category: Mapped[Optional[str]] = mapped_column(String(50))
    title: Mapped[Optional[str]] = mapped_column(String(150))
    comment: Mapped[Optional[str]] = mapped_column(Text)

    rating_overall: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_food_quality: Mapped[Optional[int]] = mapped_column(Integer)
    rating_service: Mapped[Optional[int]] = mapped_column(Integer)
    rating_cleanliness: Mapped[Optional[int]] = mapped_column(Integer)
    rating_value: Mapped[Optional[int]] = mapped_column(Integer)

    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sentiment: Mapped[Sentiment] = mapped_column(
        enum_column(Sentiment), nullable=False, default=Sentiment.NEUTRAL
    )
    sentiment_score: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0"))

    status: Mapped[FeedbackStatus] = mapped_column(
        enum_column(FeedbackStatus), nullable=False, default=FeedbackStatus.PENDING, index=True
    )
    priority: Mapped[FeedbackPriority] = mapped_column(
        enum_column(FeedbackPriority), nullable=False, default=FeedbackPriority.MEDIUM
    )

    admin_response: Mapped[Optional[str]] = mapped_column(Text)
    responded_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text)

    helpful_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    not_helpful_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    votes: Mapped[List["FeedbackVote"]] = relationship(
        back_populates="feedback", cascade="all, delete-orphan"
    )


class FeedbackVote(TimestampModel):
    """One user's helpful/not-helpful vote on a feedback entry."""

    __tablename__ = "feedback_votes"
    __table_args__ = (UniqueConstraint("feedback_id", "user_id", name="uq_feedback_votes_user"),)

    feedback_id: Mapped[str] = mapped_column(
        ForeignKey("feedback.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    helpful: Mapped[bool] = mapped_column(Boolean, nullable=False)

    feedback: Mapped["Feedback"] = relationship(back_populates="votes")
