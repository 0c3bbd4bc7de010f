"""Wallet balance, ledger and recharge workflow."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from messmate.api import deps
from messmate.config import settings
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import PaymentRecordStatus, UserRole
from messmate.models.user import User
from messmate.realtime import events
from messmate.realtime.notifier import RealtimeNotifier
from messmate.schemas.common import SuccessResponse
from messmate.schemas.payment import PaymentResponse, UPIPaymentResponse
from messmate.schemas.wallet import (
    RechargeDecisionRequest,
    RechargeRequest,
    WalletDetailsResponse,
    WalletSummary,
    WalletTransactionResponse,
)
from messmate.services.payment_service import PaymentService
from messmate.services.wallet_service import WalletService
from messmate.utils.qr import build_upi_url, qr_data_url

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get("/details")
def wallet_details(
    current_user: User = Depends(deps.get_current_user),
    wallet_service: WalletService = Depends(deps.get_wallet_service),
):
    totals = wallet_service.ledger_totals(current_user)
    upi_url = build_upi_url(settings.UPI_ID, settings.UPI_PAYEE_NAME, currency=settings.CURRENCY)
    details = WalletDetailsResponse(
        balance=float(current_user.wallet_balance),
        total_credited=float(totals["total_credited"]),
        total_debited=float(totals["total_debited"]),
        recent_transactions=[
            WalletTransactionResponse.model_validate(t)
            for t in wallet_service.recent_transactions(current_user)
        ],
        upi_id=settings.UPI_ID,
        payment_qr=qr_data_url(upi_url),
    )
    return SuccessResponse.create(data=details)


@router.get("/transactions")
def wallet_transactions(
    params: PaginationParams = Depends(deps.get_pagination),
    current_user: User = Depends(deps.get_current_user),
    wallet_service: WalletService = Depends(deps.get_wallet_service),
):
    entries, total = wallet_service.list_transactions(current_user, params)
    return SuccessResponse.create(
        data=[WalletTransactionResponse.model_validate(t) for t in entries],
        pagination=pagination_meta(params, total),
    )


@router.post("/recharge", status_code=status.HTTP_201_CREATED)
def request_recharge(
    payload: RechargeRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(deps.get_current_user),
    payment_service: PaymentService = Depends(deps.get_payment_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    payment, qr_code = payment_service.request_recharge(current_user, payload.amount, payload.description)
    data = UPIPaymentResponse(
        payment=PaymentResponse.model_validate(payment),
        upi_url=payment.upi_url,
        qr_code=qr_code,
    )
    background_tasks.add_task(
        notifier.to_role,
        UserRole.ADMIN.value,
        events.PAYMENT_STATUS,
        {"payment": data.payment, "user_id": current_user.id},
    )
    return SuccessResponse.create(message="Recharge request created", data=data)


# ---------------------------------------------------------------- admin ---


@router.get("/admin/pending-recharges")
def pending_recharges(
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    payments = payment_service.pending_recharges()
    return SuccessResponse.create(data=[PaymentResponse.model_validate(p) for p in payments])


@router.post("/admin/approve-recharge")
def approve_recharge(
    payload: RechargeDecisionRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    payment = payment_service.approve(admin, payload.payment_id, payload.notes)
    data = PaymentResponse.model_validate(payment)
    background_tasks.add_task(
        notifier.to_user,
        payment.user_id,
        events.PAYMENT_STATUS,
        {"payment": data, "status": PaymentRecordStatus.COMPLETED.value},
    )
    return SuccessResponse.create(message="Recharge approved", data=data)


@router.post("/admin/reject-recharge")
def reject_recharge(
    payload: RechargeDecisionRequest,
    background_tasks: BackgroundTasks,
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
    notifier: RealtimeNotifier = Depends(deps.get_notifier),
):
    payment = payment_service.reject(admin, payload.payment_id, payload.reason)
    data = PaymentResponse.model_validate(payment)
    background_tasks.add_task(
        notifier.to_user,
        payment.user_id,
        events.PAYMENT_STATUS,
        {"payment": data, "status": PaymentRecordStatus.FAILED.value},
    )
    return SuccessResponse.create(message="Recharge rejected", data=data)


@router.get("/admin/all-wallets")
def all_wallets(
    search: Optional[str] = Query(None),
    params: PaginationParams = Depends(deps.get_pagination),
    admin: User = Depends(deps.require_admin),
    payment_service: PaymentService = Depends(deps.get_payment_service),
):
    rows, total = payment_service.all_wallets(params, search)
    return SuccessResponse.create(
        data=[WalletSummary(**row) for row in rows],
        pagination=pagination_meta(params, total),
    )
