"""
User, authentication and profile schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import EmailStr, Field

from messmate.models.enums import UserRole
from messmate.schemas.common import BaseSchema

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "UpdatePasswordRequest",
    "UserResponse",
    "AuthResponse",
    "UserUpdateRequest",
    "WalletAddRequest",
]


class RegisterRequest(BaseSchema):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1, le=6)


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UpdatePasswordRequest(BaseSchema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


class UserResponse(BaseSchema):
    id: str
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    student_id: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    avatar_url: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    is_verified: bool
    wallet_balance: float
    total_bookings: int
    total_spent: float
    last_login: Optional[datetime] = None
    created_at: datetime


class AuthResponse(BaseSchema):
    user: UserResponse
    token: str


class UserUpdateRequest(BaseSchema):
    """Profile changes. ``role`` and the account flags are honoured for admins only."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    student_id: Optional[str] = Field(None, max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1, le=6)
    avatar_url: Optional[str] = Field(None, max_length=500)
    preferences: Optional[Dict[str, Any]] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    is_verified: Optional[bool] = None


class WalletAddRequest(BaseSchema):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)
