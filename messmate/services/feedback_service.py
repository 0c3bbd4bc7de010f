"""
Feedback collection, moderation and helpful votes.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.core.exceptions import AuthorizationError, InvalidStateError, ValidationError
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.enums import FeedbackStatus, FeedbackType, Sentiment
from messmate.models.feedback import Feedback
from messmate.models.user import User
from messmate.repositories.booking_repository import BookingRepository
from messmate.repositories.feedback_repository import FeedbackRepository
from messmate.repositories.menu_repository import MenuRepository
from messmate.services.base_service import BaseService, track_performance

POSITIVE_WORDS = ("good", "great", "excellent", "amazing", "love", "best", "fantastic", "awesome")
NEGATIVE_WORDS = ("bad", "terrible", "awful", "hate", "worst", "disgusting", "horrible", "poor")

RATING_FIELDS = (
    "rating_overall",
    "rating_food_quality",
    "rating_service",
    "rating_cleanliness",
    "rating_value",
)


def analyze_sentiment(comment: Optional[str]) -> Tuple[Sentiment, Decimal]:
    """Keyword-count sentiment: label plus a score of 0.5, 0 or -0.5."""
    if not comment:
        return Sentiment.NEUTRAL, Decimal("0")
    text = comment.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in text)
    negative = sum(1 for word in NEGATIVE_WORDS if word in text)
    if positive > negative:
        return Sentiment.POSITIVE, Decimal("0.5")
    if negative > positive:
        return Sentiment.NEGATIVE, Decimal("-0.5")
    return Sentiment.NEUTRAL, Decimal("0")


class FeedbackService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.feedback = FeedbackRepository(db)
        self.bookings = BookingRepository(db)
        self.menus = MenuRepository(db)

    def get_for(self, actor: User, feedback_id: str) -> Feedback:
        feedback = self.feedback.get_or_404(feedback_id)
        if not actor.is_admin and feedback.user_id != actor.id:
            raise AuthorizationError("Not authorized to access this feedback")
        return feedback

    def list(
        self,
        actor: User,
        params: PaginationParams,
        status: Optional[FeedbackStatus] = None,
        feedback_type: Optional[FeedbackType] = None,
        rating: Optional[int] = None,
    ) -> Tuple[List[Feedback], int]:
        user_id = None if actor.is_admin else actor.id
        return self.feedback.list(params, user_id, status, feedback_type, rating)

    @track_performance("create_feedback")
    def create(self, user: User, data: Dict[str, Any]) -> Feedback:
        data = dict(data)
        for field in RATING_FIELDS:
            value = data.get(field)
            if value is not None and not 1 <= int(value) <= 5:
                raise ValidationError("Ratings must be between 1 and 5", field_errors={field: ["1..5"]})

        booking_id = data.get("booking_id")
        if booking_id:
            booking = self.bookings.get_or_404(booking_id)
            if booking.user_id != user.id:
                raise AuthorizationError("Not authorized to give feedback for this booking")
            if not data.get("menu_item_id"):
                data["menu_item_id"] = booking.menu_item_id

        menu_item = None
        if data.get("menu_item_id"):
            menu_item = self.menus.get_or_404(data["menu_item_id"])

        sentiment, score = analyze_sentiment(data.get("comment"))
        with self.transaction():
            feedback = self.feedback.create(
                user_id=user.id,
                sentiment=sentiment,
                sentiment_score=score,
                status=FeedbackStatus.PENDING,
                **data,
            )
            if menu_item is not None:
                menu_item.add_rating(feedback.rating_overall)
                self.db.flush()

        self._logger.info(
            "Feedback submitted",
            extra={"feedback_id": feedback.feedback_id, "sentiment": sentiment.value},
        )
        return feedback

    def vote(self, user: User, feedback_id: str, helpful: bool) -> Feedback:
        """
        Record a helpful / not-helpful vote.

        One vote per user; voting again with the other choice switches it.
        """
        feedback = self.feedback.get_or_404(feedback_id)
        existing = self.feedback.get_vote(feedback.id, user.id)
        if existing is not None and existing.helpful == helpful:
            return feedback

        with self.transaction():
            if existing is None:
                self.feedback.add_vote(feedback.id, user.id, helpful)
            else:
                existing.helpful = helpful
                if helpful:
                    feedback.not_helpful_count = max(0, feedback.not_helpful_count - 1)
                else:
                    feedback.helpful_count = max(0, feedback.helpful_count - 1)
            if helpful:
                feedback.helpful_count += 1
            else:
                feedback.not_helpful_count += 1
            self.db.flush()
        return feedback

    def respond(self, admin: User, feedback_id: str, response: str) -> Feedback:
        feedback = self.feedback.get_or_404(feedback_id)
        if FeedbackStatus(feedback.status) in (FeedbackStatus.RESOLVED, FeedbackStatus.CLOSED):
            raise InvalidStateError("Feedback is already resolved")
        with self.transaction():
            feedback.admin_response = response
            feedback.responded_by_id = admin.id
            feedback.responded_at = utcnow()
            feedback.status = FeedbackStatus.IN_PROGRESS
        self._logger.info("Feedback responded", extra={"feedback_id": feedback.feedback_id})
        return feedback

    def resolve(self, admin: User, feedback_id: str, resolution_notes: Optional[str] = None) -> Feedback:
        feedback = self.feedback.get_or_404(feedback_id)
        with self.transaction():
            feedback.status = FeedbackStatus.RESOLVED
            feedback.resolved_at = utcnow()
            feedback.resolution_notes = resolution_notes
            if feedback.responded_by_id is None:
                feedback.responded_by_id = admin.id
        self._logger.info("Feedback resolved", extra={"feedback_id": feedback.feedback_id})
        return feedback

    def stats(self) -> Dict[str, Any]:
        return self.feedback.stats()
