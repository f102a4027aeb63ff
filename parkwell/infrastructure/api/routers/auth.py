from fastapi import APIRouter, Depends, status

from parkwell.application.services.auth_service import AuthService
from parkwell.infrastructure.api.dependencies import CurrentUser, get_auth_service, get_current_user
from parkwell.infrastructure.api.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    VerifyEmailRequest,
)
from parkwell.infrastructure.api.schemas.common import MessageResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return await service.register(data.first_name, data.last_name, data.email, data.password)


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(data: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    await service.verify_email(data.email, data.code)
    return {"message": "Email verified successfully"}


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token, user, permissions = await service.login(data.email, data.password)
    return {"access_token": token, "token_type": "bearer", "user": user, "permissions": permissions}


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, service: AuthService = Depends(get_auth_service)):
    await service.forgot_password(data.email)
    return {"message": "If an account with that email exists, a password reset OTP has been sent."}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    await service.reset_password(data.email, data.otp, data.new_password)
    return {"message": "Password has been reset successfully."}


@router.get("/me", response_model=ProfileResponse)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user, permissions = await service.get_profile(current_user.id)
    return {"user": user, "permissions": permissions}
