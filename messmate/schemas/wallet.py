"""Wallet ledger schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from messmate.models.enums import TransactionType
from messmate.schemas.common import BaseSchema


class WalletTransactionResponse(BaseSchema):
    id: str
    type: TransactionType
    amount: float
    description: str
    transaction_id: Optional[str] = None
    balance_after: float
    created_at: datetime


class WalletDetailsResponse(BaseSchema):
    balance: float
    total_credited: float
    total_debited: float
    recent_transactions: List[WalletTransactionResponse]
    upi_id: str
    payment_qr: Optional[str] = None


class RechargeRequest(BaseSchema):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class RechargeDecisionRequest(BaseSchema):
    payment_id: str
    notes: Optional[str] = Field(None, max_length=255)
    reason: Optional[str] = Field(None, max_length=255)


class WalletSummary(BaseSchema):
    user_id: str
    name: str
    email: str
    student_id: Optional[str] = None
    wallet_balance: float
    total_credited: float
    total_debited: float
