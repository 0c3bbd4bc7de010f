"""
Password hashing and JWT access tokens.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from messmate.config import settings
from messmate.core.exceptions import AuthenticationError, ErrorCode, ValidationError


@lru_cache()
def _pwd_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.BCRYPT_ROUNDS,
    )


@dataclass(frozen=True)
class JWTSettings:
    """JWT configuration."""
    secret_key: str
    algorithm: str = "HS256"
    access_token_expires_minutes: int = 60

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ValueError("JWT secret_key cannot be empty")
        if self.access_token_expires_minutes <= 0:
            raise ValueError("access_token_expires_minutes must be positive")

    @classmethod
    def from_settings(cls) -> "JWTSettings":
        return cls(
            secret_key=settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            access_token_expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )


def _prepare_password_for_bcrypt(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    if len(password.encode("utf-8")) > 71:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()
    return password


def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("Password cannot be empty", field_errors={"password": ["required"]})
    return _pwd_context().hash(_prepare_password_for_bcrypt(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return _pwd_context().verify(_prepare_password_for_bcrypt(plain_password), hashed_password)
    except ValueError:
        # malformed stored hash
        return False


class TokenDecodeError(AuthenticationError):
    """Raised when a JWT cannot be decoded or validated."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, ErrorCode.TOKEN_INVALID)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    *,
    subject: str,
    role: str,
    jwt_settings: Optional[JWTSettings] = None,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None,
) -> str:
    """
    Create a signed access token.

    The token carries the user id in ``sub`` and the role in ``role``.
    """
    jwt_settings = jwt_settings or JWTSettings.from_settings()
    now = _utcnow()
    if expires_delta is None:
        expires_delta = timedelta(minutes=jwt_settings.access_token_expires_minutes)

    payload: dict[str, Any] = {
        "sub": str(subject),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": "access",
    }
    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, jwt_settings.secret_key, algorithm=jwt_settings.algorithm)


def decode_token(token: str, jwt_settings: Optional[JWTSettings] = None) -> dict[str, Any]:
    """
    Decode and validate an access token.

    Raises:
        TokenDecodeError: token is malformed, expired, or lacks a subject
    """
    jwt_settings = jwt_settings or JWTSettings.from_settings()
    if not token:
        raise TokenDecodeError("No token provided")
    try:
        payload = jwt.decode(token, jwt_settings.secret_key, algorithms=[jwt_settings.algorithm])
    except ExpiredSignatureError as e:
        raise TokenDecodeError("Token has expired") from e
    except JWTError as e:
        raise TokenDecodeError() from e

    if not payload.get("sub"):
        raise TokenDecodeError("Invalid token payload")
    return payload


__all__ = [
    "JWTSettings",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
    "TokenDecodeError",
]
