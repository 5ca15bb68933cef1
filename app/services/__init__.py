"""Services for business logic."""

from app.services.auth_service import AuthService
from app.services.email_service import EmailService, get_email_service
from app.services.refresh_token_service import RefreshTokenService
from app.services.user_service import UserService

__all__ = ["AuthService", "EmailService", "get_email_service", "RefreshTokenService", "UserService"]
