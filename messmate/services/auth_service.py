"""
Authentication service: registration, login and password changes.

Repeated failed logins lock the account for a while; the lock and the
attempt counter live on the user row.
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.config import settings
from messmate.core.exceptions import (
    AuthenticationError,
    DuplicateEntryError,
    ErrorCode,
    ValidationError,
)
from messmate.core.security import (
    TokenDecodeError,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from messmate.models.base import utcnow
from messmate.models.enums import UserRole
from messmate.models.user import User
from messmate.repositories.user_repository import UserRepository
from messmate.services.base_service import BaseService, track_performance

MIN_PASSWORD_LENGTH = 6


class AuthService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(subject=user.id, role=UserRole(user.role).value)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    @track_performance("register")
    def register(self, data: Dict[str, Any]) -> Tuple[User, str]:
        """
        Create a student account and return it with an access token.

        Self-registration never grants the admin role.
        """
        data = dict(data)
        email = data.pop("email").strip().lower()
        password = data.pop("password")
        data.pop("role", None)
        self._check_password(password)

        if self.users.get_by_email(email):
            raise DuplicateEntryError("User already exists with this email", field="email")
        student_id = data.get("student_id")
        if student_id and self.users.get_by_student_id(student_id):
            raise DuplicateEntryError("Student ID already registered", field="student_id")

        with self.transaction():
            user = self.users.create(
                email=email,
                password_hash=hash_password(password),
                role=UserRole.STUDENT,
                preferences=data.pop("preferences", None) or {},
                **data,
            )

        self._logger.info("User registered", extra={"registered_user_id": user.id})
        return user, self.issue_token(user)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    @track_performance("login")
    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.users.get_by_email(email)
        if user is None:
            raise AuthenticationError("Invalid credentials")

        if user.is_locked:
            self._logger.warning("Login attempt on locked account", extra={"login_user_id": user.id})
            raise AuthenticationError(
                "Account temporarily locked due to too many failed login attempts",
                ErrorCode.ACCOUNT_LOCKED,
            )
        if not user.is_active:
            raise AuthenticationError("Account is deactivated", ErrorCode.ACCOUNT_INACTIVE)

        if not verify_password(password, user.password_hash):
            self._record_failed_login(user)
            raise AuthenticationError("Invalid credentials")

        with self.transaction():
            user.login_attempts = 0
            user.lock_until = None
            user.last_login = utcnow()

        self._logger.info("User logged in", extra={"login_user_id": user.id})
        return user, self.issue_token(user)

    def _record_failed_login(self, user: User) -> None:
        with self.transaction():
            # an expired lock starts a fresh count
            if user.lock_until is not None and not user.is_locked:
                user.login_attempts = 0
                user.lock_until = None
            user.login_attempts = (user.login_attempts or 0) + 1
            if user.login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
                user.lock_until = utcnow() + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
        self._logger.warning(
            "Failed login attempt",
            extra={"login_user_id": user.id, "attempts": user.login_attempts},
        )

    # -------------------------------------------------------------------------
    # Tokens & passwords
    # -------------------------------------------------------------------------

    def authenticate_token(self, token: str) -> User:
        """Resolve a bearer token to an active user."""
        payload = decode_token(token)
        user = self.users.get(payload.get("sub"))
        if user is None:
            raise TokenDecodeError("User for this token no longer exists")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated", ErrorCode.ACCOUNT_INACTIVE)
        return user

    def update_password(self, user: User, current_password: str, new_password: str) -> str:
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        self._check_password(new_password)
        with self.transaction():
            user.password_hash = hash_password(new_password)
        self._logger.info("Password updated", extra={"password_user_id": user.id})
        return self.issue_token(user)

    @staticmethod
    def _check_password(password: Optional[str]) -> None:
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "Password too short",
                field_errors={"password": [f"must be at least {MIN_PASSWORD_LENGTH} characters"]},
            )
