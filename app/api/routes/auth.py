"""Authentication endpoints."""

import logging

from fastapi import APIRouter, BackgroundTasks, Request, status

from app.core.dependencies import CurrentUser, DbSession
from app.core.rate_limiter import get_client_ip, rate_limiter
from app.schemas.common import ApiResponse, MessageResponse, envelope
from app.schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    PasswordChange,
    PasswordResetConfirm,
    RefreshRequest,
    UserCreate,
    UserLogin,
    UserResponse,
    VerifyEmailRequest,
)
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter()


# ─────────────────────────────────────────────
# Register
# ─────────────────────────────────────────────

@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: DbSession):
    """
    Register a new user.
    Returns the public profile plus access and refresh tokens.
    """
    result = await AuthService.register(db, user_data)
    return envelope(result, "User registered successfully")


# ─────────────────────────────────────────────
# Login
# ─────────────────────────────────────────────

@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(credentials: UserLogin, request: Request, db: DbSession):
    """Authenticate with email and password."""
    rate_limiter.check("login_ip", get_client_ip(request))

    result = await AuthService.login(db, credentials.email, credentials.password)
    return envelope(result, "Login successful")


# ─────────────────────────────────────────────
# Logout
# ─────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: CurrentUser, db: DbSession):
    """
    Revoke every refresh token of the caller.

    The access token used for this call keeps working until it expires.
    """
    await AuthService.logout(db, current_user.id)
    return envelope(message="Logout successful")


# ─────────────────────────────────────────────
# Refresh Token (Rotation)
# ─────────────────────────────────────────────

@router.post("/refresh-token", response_model=ApiResponse[AuthResponse])
async def refresh_token(body: RefreshRequest, db: DbSession):
    """Trade a refresh token for a new access + refresh token pair."""
    result = await AuthService.refresh(db, body.refresh_token)
    return envelope(result, "Token refreshed successfully")


# ─────────────────────────────────────────────
# Forgot / Reset Password
# ─────────────────────────────────────────────

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: DbSession,
):
    """
    Request a password reset link.

    Always answers the same way, and just as fast, so the response never
    reveals whether the email belongs to an account. The mail is sent after
    the response.
    """
    rate_limiter.check("forgot_password_ip", get_client_ip(request))
    rate_limiter.check("forgot_password_email", body.email.lower())

    await AuthService.forgot_password(db, body.email, background_tasks=background_tasks)
    return envelope(message="If an account with this email exists, a password reset link has been sent.")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: PasswordResetConfirm, db: DbSession):
    """Set a new password using a reset token."""
    await AuthService.reset_password(db, body.token, body.password)
    return envelope(message="Password reset successful")


# ─────────────────────────────────────────────
# Change Password
# ─────────────────────────────────────────────

@router.post("/change-password", response_model=MessageResponse)
async def change_password(body: PasswordChange, current_user: CurrentUser, db: DbSession):
    """Change the caller's password. Requires the current one."""
    await AuthService.change_password(db, current_user.id, body.current_password, body.new_password)
    return envelope(message="Password changed successfully")


# ─────────────────────────────────────────────
# Email Verification
# ─────────────────────────────────────────────

@router.post("/verify-email", response_model=ApiResponse[UserResponse])
async def verify_email(body: VerifyEmailRequest, db: DbSession):
    user = await AuthService.verify_email(db, body.token)
    return envelope(UserResponse.model_validate(user), "Email verified successfully")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(current_user: CurrentUser, db: DbSession):
    await AuthService.resend_verification(db, current_user)
    return envelope(message="Verification email sent")


# ─────────────────────────────────────────────
# Current User
# ─────────────────────────────────────────────

@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_current_user(current_user: CurrentUser):
    """Return the authenticated user's public profile."""
    return envelope(UserResponse.model_validate(current_user))
