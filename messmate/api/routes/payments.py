"""UPI payments and admin payment decisions."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import PaymentRecordStatus, PaymentType
from messmate.models.payment import Payment
from messmate.models.user import User
from messmate.realtime import events
from messmate.realtime.notifier import RealtimeNotifier
from messmate.schemas.common import SuccessResponse
from messmate.schemas.payment import (
    GenerateUPIRequest,
    PaymentDecisionRequest,
    PaymentResponse,
    UPIPaymentResponse,
    VerifyPaymentRequest,
)
from messmate.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


def _emit_status(background_tasks: BackgroundTasks, notifier: RealtimeNotifier, payment: Payment) -> PaymentResponse:
    data = PaymentResponse.model_validate(payment)
    background_tasks.add_task(
        notifier.to_user,
        payment.user_id,
        events.PAYMENT_STATUS,
        {"payment": data, "status": data.status.value},
    )
    return data


@router.post("/generate-upi", status_code=status.HTTP_201_CREATED)
def generate_upi(
    payload: GenerateUPIRequest,
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    payment, qr_code = payment_service.generate_upi(
        current_user, payload.amount, payload.payment_type, payload.description
    )
    return SuccessResponse.create(
        message="UPI payment generated",
        data=UPIPaymentResponse(
            payment=PaymentResponse.model_validate(payment),
            upi_url=payment.upi_url,
            qr_code=qr_code,
        ),
    )


@router.post("/verify")
def verify_payment(
    payload: VerifyPaymentRequest,
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    payment = payment_service.submit_verification(current_user, payload.payment_id, payload.utr_reference)
    return SuccessResponse.create(
        message="Payment submitted for verification", data=PaymentResponse.model_validate(payment)
    )


def _list(
    current_user: User,
    payment_service: PaymentService,
    params: PaginationParams,
    payment_status: Optional[PaymentRecordStatus],
    payment_type: Optional[PaymentType],
    user_id: Optional[str],
):
    payments, total = payment_service.list(current_user, params, payment_status, payment_type, user_id)
    return SuccessResponse.create(
        data=[PaymentResponse.model_validate(p) for p in payments],
        pagination=pagination_meta(params, total),
    )


@router.get("/")
def list_payments(
    payment_status: Optional[PaymentRecordStatus] = Query(None, alias="status"),
    payment_type: Optional[PaymentType] = Query(None),
    user_id: Optional[str] = Query(None, description="Admin only"),
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    return _list(current_user, payment_service, params, payment_status, payment_type, user_id)


@router.get("/history")
def payment_history(
    payment_status: Optional[PaymentRecordStatus] = Query(None, alias="status"),
    payment_type: Optional[PaymentType] = Query(None),
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    return _list(current_user, payment_service, params, payment_status, payment_type, None)


@router.get("/status/{payment_id}")
def payment_status(
    payment_id: str,
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    payment = payment_service.get_for(current_user, payment_id)
    return SuccessResponse.create(data=PaymentResponse.model_validate(payment))


@router.patch("/{payment_id}/approve")
def approve_payment(
    payment_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[PaymentDecisionRequest] = None,
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    payment = payment_service.approve(admin, payment_id, payload.notes if payload else None)
    return SuccessResponse.create(
        message="Payment approved", data=_emit_status(background_tasks, notifier, payment)
    )


@router.patch("/{payment_id}/reject")
def reject_payment(
    payment_id: str,
    background_tasks: BackgroundTasks,
    payload: Optional[PaymentDecisionRequest] = None,
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    payment = payment_service.reject(admin, payment_id, payload.reason if payload else None)
    return SuccessResponse.create(
        message="Payment rejected", data=_emit_status(background_tasks, notifier, payment)
    )
