"""Pydantic schemas for API request/response validation."""

from app.schemas.common import ApiResponse, MessageResponse, Page, envelope
from app.schemas.user import (
    UserCreate,
    UserLogin,
    UserResponse,
    AuthResponse,
    RefreshRequest,
    PasswordChange,
    ForgotPasswordRequest,
    PasswordResetConfirm,
    VerifyEmailRequest,
    ProfileUpdate,
    UserStatusUpdate,
    UserRoleUpdate,
)

__all__ = [
    "ApiResponse",
    "MessageResponse",
    "Page",
    "envelope",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "RefreshRequest",
    "PasswordChange",
    "ForgotPasswordRequest",
    "PasswordResetConfirm",
    "VerifyEmailRequest",
    "ProfileUpdate",
    "UserStatusUpdate",
    "UserRoleUpdate",
]
