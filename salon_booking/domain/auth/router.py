"""Auth router - FastAPI endpoints for admin authentication"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...auth import get_auth_service, get_current_user, get_optional_user
from ...models import AdminUser
from ...rate_limiter import get_client_ip, rate_limit_auth
from ...schemas import ApiResponse, MessageResponse
from .schemas import (
    AdminUserResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    ProfileData,
    ProfileResponse,
    ResetPasswordRequest,
    VerifyData,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def to_user_response(user: AdminUser) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        email=user.email,
        firstName=user.first_name,
        lastName=user.last_name,
        role=user.role,
        lastLogin=user.last_login_at,
    )


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(
    data: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_auth),
):
    """Authenticate an admin user and return an access token"""
    token, user, expires_in = service.login(
        data.email, data.password, data.rememberMe, ip_address=get_client_ip(request)
    )
    return ApiResponse(
        message="Login successful",
        data=LoginData(token=token, user=to_user_response(user), expiresIn=expires_in),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(user: Optional[AdminUser] = Depends(get_optional_user)):
    """Tokens are stateless; the client discards its copy"""
    if user:
        logger.info(f"User {user.id} logged out")
    return MessageResponse(message="Logout successful")


@router.get("/verify", response_model=ApiResponse[VerifyData])
async def verify(request: Request, current_user: AdminUser = Depends(get_current_user)):
    """Check a token and return the current user"""
    payload = request.state.token_payload
    return ApiResponse(
        message="Token is valid",
        data=VerifyData(user=to_user_response(current_user), tokenExp=payload["exp"]),
    )


@router.get("/profile", response_model=ApiResponse[ProfileData])
async def profile(current_user: AdminUser = Depends(get_current_user)):
    """Get the current user's profile"""
    return ApiResponse(
        data=ProfileData(
            user=ProfileResponse(
                **to_user_response(current_user).model_dump(),
                createdAt=current_user.created_at,
                passwordChangedAt=current_user.password_changed_at,
            )
        )
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: AdminUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    service.change_password(current_user, data.currentPassword, data.newPassword)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_auth),
):
    """Request a password reset; the answer never reveals whether the email exists"""
    message = service.request_password_reset(data.email, ip_address=get_client_ip(request))
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(rate_limit_auth),
):
    service.reset_password(data.token, data.newPassword)
    return MessageResponse(message="Password has been reset")
