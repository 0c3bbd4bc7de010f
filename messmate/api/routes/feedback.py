"""Feedback endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import FeedbackStatus, FeedbackType
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.feedback import (
    FeedbackCreate,
    FeedbackRespondRequest,
    FeedbackResolveRequest,
    FeedbackResponse,
    FeedbackVoteRequest,
)
from messmate.services.feedback_service import FeedbackService

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.get("/")
def list_feedback(
    feedback_status: Optional[FeedbackStatus] = Query(None, alias="status"),
    feedback_type: Optional[FeedbackType] = Query(None, alias="type"),
    rating: Optional[int] = Query(None, ge=1, le=5),
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    entries, total = feedback_service.list(current_user, params, feedback_status, feedback_type, rating)
    return SuccessResponse.create(
        data=[FeedbackResponse.model_validate(f) for f in entries],
        pagination=pagination_meta(params, total),
    )


@router.get("/admin/stats")
def feedback_stats(
    admin: User = Depends(deps.require_admin),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    return SuccessResponse.create(data=feedback_service.stats())


@router.get("/{feedback_id}")
def get_feedback(
    feedback_id: str,
    current_user: User = Depends(deps.get_current_user),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    feedback = feedback_service.get_for(current_user, feedback_id)
    return SuccessResponse.create(data=FeedbackResponse.model_validate(feedback))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_feedback(
    payload: FeedbackCreate,
    current_user: User = Depends(deps.get_current_user),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    feedback = feedback_service.create(current_user, payload.model_dump())
    return SuccessResponse.create(
        message="Feedback submitted successfully", data=FeedbackResponse.model_validate(feedback)
    )


@router.post("/{feedback_id}/vote")
def vote_feedback(
    feedback_id: str,
    payload: FeedbackVoteRequest,
    current_user: User = Depends(deps.get_current_user),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    feedback = feedback_service.vote(current_user, feedback_id, payload.helpful)
    return SuccessResponse.create(message="Vote recorded", data=FeedbackResponse.model_validate(feedback))


@router.post("/{feedback_id}/respond")
def respond_feedback(
    feedback_id: str,
    payload: FeedbackRespondRequest,
    admin: User = Depends(deps.require_admin),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    feedback = feedback_service.respond(admin, feedback_id, payload.response)
    return SuccessResponse.create(message="Response added", data=FeedbackResponse.model_validate(feedback))


@router.patch("/{feedback_id}/resolve")
def resolve_feedback(
    feedback_id: str,
    payload: Optional[FeedbackResolveRequest] = None,
    admin: User = Depends(deps.require_admin),
    feedback_service: FeedbackService = Depends(deps.get_feedback_service),
):
    notes = payload.resolution_notes if payload else None
    feedback = feedback_service.resolve(admin, feedback_id, notes)
    return SuccessResponse.create(message="Feedback resolved", data=FeedbackResponse.model_validate(feedback))
