"""User profiles, admin user management and admin wallet credits."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import UserRole
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.user import UserResponse, UserUpdateRequest, WalletAddRequest
from messmate.schemas.wallet import WalletTransactionResponse
from messmate.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
def get_me(current_user: User = Depends(deps.get_current_user)):
    return SuccessResponse.create(data=UserResponse.model_validate(current_user))


@router.put("/me")
def update_me(
    payload: UserUpdateRequest,
    current_user: User = Depends(deps.get_current_user),
    user_service: UserService = Depends(deps.get_user_service),
):
    user = user_service.update(current_user, current_user.id, payload.model_dump(exclude_unset=True))
    return SuccessResponse.create(message="Profile updated successfully", data=UserResponse.model_validate(user))


@router.get("/")
def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Name, email or student id"),
    params: PaginationParams = Depends(deps.get_pagination),
    admin: User = Depends(deps.require_admin),
    user_service: UserService = Depends(deps.get_user_service),
):
    users, total = user_service.list(params, role=role, is_active=is_active, search=search)
    return SuccessResponse.create(
        data=[UserResponse.model_validate(u) for u in users],
        pagination=pagination_meta(params, total),
    )


@router.get("/{user_id}")
def get_user(
    user_id: str,
    current_user: User = Depends(deps.get_current_user),
    user_service: UserService = Depends(deps.get_user_service),
):
    user = user_service.get_for(current_user, user_id)
    return SuccessResponse.create(data=UserResponse.model_validate(user))


@router.put("/{user_id}")
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    current_user: User = Depends(deps.get_current_user),
    user_service: UserService = Depends(deps.get_user_service),
):
    user = user_service.update(current_user, user_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse.create(message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete("/{user_id}")
def deactivate_user(
    user_id: str,
    admin: User = Depends(deps.require_admin),
    user_service: UserService = Depends(deps.get_user_service),
):
    user = user_service.deactivate(admin, user_id)
    return SuccessResponse.create(message="User deactivated successfully", data=UserResponse.model_validate(user))


@router.get("/{user_id}/stats")
def user_stats(
    user_id: str,
    current_user: User = Depends(deps.get_current_user),
    user_service: UserService = Depends(deps.get_user_service),
):
    return SuccessResponse.create(data=user_service.stats(current_user, user_id))


@router.post("/{user_id}/wallet/add")
def add_money(
    user_id: str,
    payload: WalletAddRequest,
    admin: User = Depends(deps.require_admin),
    user_service: UserService = Depends(deps.get_user_service),
):
    user, entry = user_service.admin_add_money(admin, user_id, payload.amount, payload.description)
    return SuccessResponse.create(
        message="Money added to wallet successfully",
        data={
            "user": UserResponse.model_validate(user),
            "transaction": WalletTransactionResponse.model_validate(entry),
        },
    )
