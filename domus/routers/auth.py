from fastapi import APIRouter, Depends, status
from domus.api.deps import get_auth_service
from domus.schemas.user import (
    ForgotPasswordRequest, LoginRequest, MessageResponse, RegisterRequest,
    ResetPasswordRequest, TokenResponse, UserResponse,
)
from domus.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    user = auth.register(data.email, data.password)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.login(data.email, data.password)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """Email a password recovery link."""
    message = await auth.forgot_password(data.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """Set a new password using the token from the recovery link."""
    message = auth.reset_password(data.token, data.password)
    return MessageResponse(message=message)
