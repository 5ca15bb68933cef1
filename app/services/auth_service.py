"""Authentication service: registration, login, refresh-token rotation and password flows."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    AccountDeactivated,
    AccountNotFound,
    AppError,
    DuplicateAccount,
    IncorrectPassword,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidToken,
)
from app.core.security import (
    FAKE_HASHED_PASSWORD,
    create_access_token,
    generate_opaque_token,
    hash_password,
    hash_token,
    verify_password,
)
from app.models.user import User, UserRole
from app.schemas.user import AuthResponse, UserCreate, UserResponse, normalize_email
from app.services.email_service import EmailService, get_email_service
from app.services.refresh_token_service import RefreshTokenService

logger = logging.getLogger(__name__)
settings = get_settings()


class AuthService:
    """Account lifecycle and session issuing."""

    # ─── User Lookup ─────────────────────────────
    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    # ─── Session Issuing ────────────────────────
    @staticmethod
    async def create_session(db: AsyncSession, user: User) -> AuthResponse:
        """Mint an access token and persist a new refresh token for ``user``."""
        access_token = create_access_token(user.id, user.email, user.role)
        refresh_token = await RefreshTokenService.issue(db, user.id)
        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=settings.access_token_expire_seconds,
        )

    # ─── Registration ───────────────────────────
    @staticmethod
    async def register(
        db: AsyncSession,
        user_data: UserCreate,
        mailer: Optional[EmailService] = None,
    ) -> AuthResponse:
        email = normalize_email(user_data.email)
        if await AuthService.get_user_by_email(db, email):
            raise DuplicateAccount()

        verification_token = generate_opaque_token()
        user = User(
            name=user_data.name,
            email=email,
            hashed_password=hash_password(user_data.password),
            role=UserRole.USER,
            is_active=True,
            email_verified=False,
            verification_token_hash=hash_token(verification_token),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            raise DuplicateAccount() from None
        await db.refresh(user)

        session = await AuthService.create_session(db, user)

        mailer = mailer or get_email_service()
        await mailer.send_verification(user.email, verification_token, user.name)

        logger.info(f"Registered user {user.id[:8]}...")
        return session

    # ─── Login (constant-time) ──────────────────
    @staticmethod
    async def login(db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Check credentials, then account state.

        Unknown email and wrong password raise the same ``InvalidCredentials``
        after the same amount of hashing work; only a caller who proved the
        password learns that the account is deactivated.
        """
        user = await AuthService.get_user_by_email(db, email)
        hashed_password = user.hashed_password if user else FAKE_HASHED_PASSWORD
        password_correct = verify_password(password, hashed_password)

        if not user or not password_correct:
            logger.warning("Failed login attempt")
            raise InvalidCredentials()

        if not user.is_active:
            logger.warning(f"Login refused for deactivated user {user.id[:8]}...")
            raise AccountDeactivated()

        user.last_login = datetime.now(timezone.utc)
        await db.flush()
        await db.refresh(user)

        logger.info(f"User {user.id[:8]}... logged in")
        return await AuthService.create_session(db, user)

    # ─── Refresh (Rotation) ─────────────────────
    @staticmethod
    async def refresh(db: AsyncSession, refresh_token: str) -> AuthResponse:
        record = await RefreshTokenService.consume(db, refresh_token)

        user = await AuthService.get_user_by_id(db, record.user_id)
        if user is None:
            raise InvalidOrExpiredToken("Invalid or expired refresh token")
        if not user.is_active:
            raise AccountDeactivated()

        logger.info(f"Rotated refresh token for user {user.id[:8]}...")
        return await AuthService.create_session(db, user)

    # ─── Logout ─────────────────────────────────
    @staticmethod
    async def logout(db: AsyncSession, user_id: str) -> int:
        """
        Revoke all of the user's refresh tokens.

        Access tokens already handed out stay valid until they expire.
        """
        revoked = await RefreshTokenService.revoke_all_for_user(db, user_id)
        logger.info(f"User {user_id[:8]}... logged out, {revoked} session(s) revoked")
        return revoked

    # ─── Forgot / Reset Password ────────────────
    @staticmethod
    async def forgot_password(
        db: AsyncSession,
        email: str,
        mailer: Optional[EmailService] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Optional[str]:
        """
        Issue a one-hour, single-use reset token and mail it.

        With ``background_tasks`` the mail goes out after the response, so a
        known email answers as fast as an unknown one. Returns the plain token
        (``None`` when no active account matches) so callers inside the process
        can hand it on; it must never be put in an HTTP response.
        """
        user = await AuthService.get_user_by_email(db, email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for an unknown or inactive email")
            return None

        token = generate_opaque_token()
        user.password_reset_token_hash = hash_token(token)
        user.password_reset_expires = datetime.now(timezone.utc) + timedelta(
            minutes=settings.password_reset_expire_minutes
        )
        await db.flush()

        mailer = mailer or get_email_service()
        message = dict(
            to_email=user.email,
            token=token,
            user_name=user.name,
            expiry_minutes=settings.password_reset_expire_minutes,
        )
        if background_tasks is not None:
            background_tasks.add_task(mailer.send_password_reset, **message)
        else:
            await mailer.send_password_reset(**message)
        logger.info(f"Password reset token issued for user {user.id[:8]}...")
        return token

    @staticmethod
    async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
        now = datetime.now(timezone.utc)
        token_hash = hash_token(token)

        result = await db.execute(
            select(User.id).where(
                User.password_reset_token_hash == token_hash,
                User.password_reset_expires > now,
            )
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            raise InvalidOrExpiredToken(status_code=400)

        # Conditional on the token still being there, so it is spent exactly once
        updated = await db.execute(
            update(User)
            .where(User.id == user_id, User.password_reset_token_hash == token_hash)
            .values(
                hashed_password=hash_password(new_password),
                password_reset_token_hash=None,
                password_reset_expires=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount != 1:
            raise InvalidOrExpiredToken(status_code=400)

        revoked = await RefreshTokenService.revoke_all_for_user(db, user_id)
        logger.info(f"Password reset for user {user_id[:8]}..., {revoked} session(s) revoked")

    # ─── Change Password ────────────────────────
    @staticmethod
    async def change_password(
        db: AsyncSession,
        user_id: str,
        current_password: str,
        new_password: str,
    ) -> None:
        user = await AuthService.get_user_by_id(db, user_id)
        if user is None:
            raise AccountNotFound()

        if not verify_password(current_password, user.hashed_password):
            raise IncorrectPassword()

        user.hashed_password = hash_password(new_password)
        await db.flush()
        logger.info(f"Password changed for user {user.id[:8]}...")

    # ─── Email Verification ─────────────────────
    @staticmethod
    async def verify_email(db: AsyncSession, token: str) -> User:
        result = await db.execute(
            select(User).where(User.verification_token_hash == hash_token(token))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidToken(status_code=400)

        user.email_verified = True
        user.verification_token_hash = None
        await db.flush()
        await db.refresh(user)
        logger.info(f"Email verified for user {user.id[:8]}...")
        return user

    @staticmethod
    async def resend_verification(
        db: AsyncSession,
        user: User,
        mailer: Optional[EmailService] = None,
    ) -> str:
        if user.email_verified:
            raise AppError("Email is already verified", status_code=400)

        token = generate_opaque_token()
        user.verification_token_hash = hash_token(token)
        await db.flush()

        mailer = mailer or get_email_service()
        await mailer.send_verification(user.email, token, user.name)
        return token
