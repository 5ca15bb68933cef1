"""User schemas for API validation."""

import re
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, HttpUrl, field_validator, model_validator

from app.models.user import UserRole

PASSWORD_SPECIALS = "@$!%*?&"
_PASSWORD_RULES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
    re.compile(r"[@$!%*?&]"),
)


def check_password_strength(password: str) -> str:
    """Require lowercase, uppercase, digit and one of ``@$!%*?&``."""
    if not all(rule.search(password) for rule in _PASSWORD_RULES):
        raise ValueError(
            "Password must contain at least one lowercase letter, one uppercase letter, "
            f"one number, and one special character ({PASSWORD_SPECIALS})"
        )
    return password


StrongPassword = Annotated[str, Field(min_length=6, max_length=128), AfterValidator(check_password_strength)]


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserCreate(BaseModel):
    """Schema for user registration."""
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: StrongPassword
    confirm_password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "UserCreate":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class UserResponse(BaseModel):
    """Public view of an account. Hash and token columns never appear here."""
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("last_login", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are UTC; SQLite returns them without an offset
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Account plus a fresh access/refresh token pair."""
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class PasswordChange(BaseModel):
    """Schema for password change."""
    current_password: str = Field(min_length=1)
    new_password: StrongPassword
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChange":
        if self.confirm_password is not None and self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Schema for completing a password reset."""
    token: str = Field(min_length=1)
    password: StrongPassword
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordResetConfirm":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class VerifyEmailRequest(BaseModel):
    token: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's own profile."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    avatar: Optional[HttpUrl] = None


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserRoleUpdate(BaseModel):
    role: UserRole
