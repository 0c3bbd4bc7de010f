"""Registration, login and password endpoints."""

from fastapi import APIRouter, Depends, status

from messmate.api import deps
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.user import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UserResponse,
)
from messmate.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
):
    user, token = auth_service.register(payload.model_dump(exclude_unset=True))
    return SuccessResponse.create(
        message="User registered successfully",
        data=AuthResponse(user=UserResponse.model_validate(user), token=token),
    )


@router.post("/login")
def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(deps.get_auth_service),
):
    user, token = auth_service.login(payload.email, payload.password)
    return SuccessResponse.create(
        message="Login successful",
        data=AuthResponse(user=UserResponse.model_validate(user), token=token),
    )


@router.get("/me")
def me(current_user: User = Depends(deps.get_current_user)):
    return SuccessResponse.create(data=UserResponse.model_validate(current_user))


@router.post("/logout")
def logout(current_user: User = Depends(deps.get_current_user)):
    # tokens are stateless; the client discards its copy
    return SuccessResponse.create(message="Logged out successfully")


@router.put("/update-password")
def update_password(
    payload: UpdatePasswordRequest,
    current_user: User = Depends(deps.get_current_user),
    auth_service: AuthService = Depends(deps.get_auth_service),
):
    token = auth_service.update_password(current_user, payload.current_password, payload.new_password)
    return SuccessResponse.create(
        message="Password updated successfully",
        data=AuthResponse(user=UserResponse.model_validate(current_user), token=token),
    )
