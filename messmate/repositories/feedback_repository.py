"""Feedback data access."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.enums import FeedbackStatus, FeedbackType, Sentiment
from messmate.models.feedback import Feedback, FeedbackVote
from messmate.repositories.base_repository import BaseRepository


class FeedbackRepository(BaseRepository[Feedback]):
    resource_name = "Feedback"

    def __init__(self, db: Session):
        super().__init__(Feedback, db)

    def list(
        self,
        params: PaginationParams,
        user_id: Optional[str] = None,
        status: Optional[FeedbackStatus] = None,
        feedback_type: Optional[FeedbackType] = None,
        rating: Optional[int] = None,
    ) -> Tuple[List[Feedback], int]:
        stmt = select(Feedback)
        if user_id:
            stmt = stmt.where(Feedback.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Feedback.status == status)
        if feedback_type is not None:
            stmt = stmt.where(Feedback.feedback_type == feedback_type)
        if rating is not None:
            stmt = stmt.where(Feedback.rating_overall == rating)
        return self.paginate(stmt.order_by(Feedback.created_at.desc()), params)

    def get_vote(self, feedback_id: str, user_id: str) -> Optional[FeedbackVote]:
        stmt = select(FeedbackVote).where(
            FeedbackVote.feedback_id == feedback_id, FeedbackVote.user_id == user_id
        )
        return self.db.scalars(stmt).first()

    def add_vote(self, feedback_id: str, user_id: str, helpful: bool) -> FeedbackVote:
        vote = FeedbackVote(feedback_id=feedback_id, user_id=user_id, helpful=helpful)
        self.db.add(vote)
        self.db.flush()
        return vote

    def stats(self) -> dict:
        total, average = self.db.execute(
            select(func.count(Feedback.id), func.avg(Feedback.rating_overall))
        ).one()
        by_status = dict(
            self.db.execute(select(Feedback.status, func.count(Feedback.id)).group_by(Feedback.status)).all()
        )
        by_sentiment = dict(
            self.db.execute(
                select(Feedback.sentiment, func.count(Feedback.id)).group_by(Feedback.sentiment)
            ).all()
        )
        return {
            "total": int(total or 0),
            "average_rating": round(float(average), 2) if average is not None else 0.0,
            "pending": int(by_status.get(FeedbackStatus.PENDING, 0)),
            "resolved": int(by_status.get(FeedbackStatus.RESOLVED, 0)),
            "positive": int(by_sentiment.get(Sentiment.POSITIVE, 0)),
            "negative": int(by_sentiment.get(Sentiment.NEGATIVE, 0)),
        }
