"""User profiles, admin user management and per-user stats."""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from messmate.core.exceptions import AuthorizationError, DuplicateEntryError
from messmate.core.pagination import PaginationParams
from messmate.models.enums import UserRole
from messmate.models.user import User, WalletTransaction
from messmate.repositories.booking_repository import BookingRepository
from messmate.repositories.user_repository import UserRepository
from messmate.services.base_service import BaseService
from messmate.services.wallet_service import WalletService

PROFILE_FIELDS = {"name", "phone", "department", "year", "avatar_url", "preferences", "student_id"}
ADMIN_ONLY_FIELDS = {"role", "is_active", "is_verified"}


class UserService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)
        self.bookings = BookingRepository(db)
        self.wallet = WalletService(db)

    def get(self, user_id: str) -> User:
        return self.users.get_or_404(user_id)

    def get_for(self, actor: User, user_id: str) -> User:
        if not actor.is_admin and actor.id != user_id:
            raise AuthorizationError("Not authorized to access this user")
        return self.get(user_id)

    def list(
        self,
        params: PaginationParams,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        return self.users.search(params, role, is_active, search)

    def update(self, actor: User, user_id: str, data: Dict[str, Any]) -> User:
        """
        Apply profile changes.

        Students may only edit their own profile fields; role and account
        flags are reserved for admins.
        """
        user = self.get_for(actor, user_id)
        allowed = PROFILE_FIELDS | (ADMIN_ONLY_FIELDS if actor.is_admin else set())
        forbidden = (set(data) & ADMIN_ONLY_FIELDS) - allowed
        if forbidden:
            raise AuthorizationError("Only admins can change role or account status")

        changes = {k: v for k, v in data.items() if k in allowed}
        student_id = changes.get("student_id")
        if student_id and student_id != user.student_id:
            existing = self.users.get_by_student_id(student_id)
            if existing is not None and existing.id != user.id:
                raise DuplicateEntryError("Student ID already registered", field="student_id")
        if "preferences" in changes:
            changes["preferences"] = {**(user.preferences or {}), **(changes["preferences"] or {})}

        with self.transaction():
            self.users.update(user, changes)
        self._logger.info(
            "User updated",
            extra={"target_user_id": user.id, "actor_id": actor.id, "fields": sorted(changes)},
        )
        return user

    def deactivate(self, admin: User, user_id: str) -> User:
        user = self.get(user_id)
        if user.id == admin.id:
            raise AuthorizationError("Admins cannot deactivate their own account")
        with self.transaction():
            user.is_active = False
        self._logger.info("User deactivated", extra={"target_user_id": user.id, "actor_id": admin.id})
        return user

    def stats(self, actor: User, user_id: str) -> Dict[str, Any]:
        user = self.get_for(actor, user_id)
        return {
            "total_bookings": user.total_bookings,
            "total_spent": float(user.total_spent),
            "wallet_balance": float(user.wallet_balance),
            "bookings_by_status": self.bookings.status_counts_for_user(user.id),
            "member_since": user.created_at,
            "last_login": user.last_login,
        }

    def admin_add_money(
        self, admin: User, user_id: str, amount: Any, description: Optional[str] = None
    ) -> Tuple[User, WalletTransaction]:
        user = self.get(user_id)
        entry = self.wallet.add_money(
            user, amount, description or f"Wallet credit by admin {admin.name}"
        )
        return user, entry
