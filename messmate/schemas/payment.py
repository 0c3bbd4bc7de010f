"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from messmate.models.enums import PaymentMethod, PaymentRecordStatus, PaymentType
from messmate.schemas.common import BaseSchema


class GenerateUPIRequest(BaseSchema):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_type: PaymentType = PaymentType.WALLET_RECHARGE
    description: Optional[str] = Field(None, max_length=255)


class VerifyPaymentRequest(BaseSchema):
    payment_id: str
    utr_reference: str = Field(..., min_length=4, max_length=64)


class PaymentDecisionRequest(BaseSchema):
    notes: Optional[str] = Field(None, max_length=255)
    reason: Optional[str] = Field(None, max_length=255)


class PaymentResponse(BaseSchema):
    id: str
    transaction_id: str
    user_id: str
    amount: float
    currency: str
    method: PaymentMethod
    payment_type: PaymentType
    status: PaymentRecordStatus
    description: Optional[str] = None
    upi_id: Optional[str] = None
    upi_url: Optional[str] = None
    utr_reference: Optional[str] = None
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UPIPaymentResponse(BaseSchema):
    payment: PaymentResponse
    upi_url: str
    qr_code: str
