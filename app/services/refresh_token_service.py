"""Refresh token store: issue, consume (rotate), revoke and purge."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import InvalidOrExpiredToken
from app.core.security import generate_opaque_token, hash_token
from app.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)
settings = get_settings()


class RefreshTokenService:
    """Persistence operations on refresh tokens."""

    @staticmethod
    async def issue(db: AsyncSession, user_id: str) -> str:
        """Persist a new refresh token for ``user_id`` and return its plain value."""
        value = generate_opaque_token()
        db.add(
            RefreshToken(
                user_id=user_id,
                token_hash=hash_token(value),
                expires_at=datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days),
            )
        )
        await db.flush()
        return value

    @staticmethod
    async def consume(db: AsyncSession, value: str) -> RefreshToken:
        """
        Revoke a usable refresh token and return its record.

        The revocation is a single conditional UPDATE, so of several
        concurrent callers presenting the same value exactly one sees an
        affected row; every other caller gets ``InvalidOrExpiredToken``.
        """
        now = datetime.now(timezone.utc)
        token_hash = hash_token(value)

        result = await db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.revoked == False,
                RefreshToken.expires_at > now,
            )
            .values(revoked=True, revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidOrExpiredToken("Invalid or expired refresh token")

        record = await db.execute(
            select(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return record.scalar_one()

    @staticmethod
    async def revoke_all_for_user(db: AsyncSession, user_id: str) -> int:
        """Revoke every outstanding token of a user. Safe to repeat."""
        result = await db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked == False)
            .values(revoked=True, revoked_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    async def count_active(db: AsyncSession, user_id: str) -> int:
        now = datetime.now(timezone.utc)
        result = await db.execute(
            select(RefreshToken.id).where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked == False,
                RefreshToken.expires_at > now,
            )
        )
        return len(result.scalars().all())

    @staticmethod
    async def purge_expired(db: AsyncSession) -> int:
        """Delete expired and revoked tokens. Housekeeping only."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            delete(RefreshToken).where(
                or_(RefreshToken.expires_at <= now, RefreshToken.revoked == True)
            )
        )
        count = result.rowcount
        if count > 0:
            logger.info(f"Purged {count} expired or revoked refresh tokens")
        return count
