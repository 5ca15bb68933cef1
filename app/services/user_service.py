"""User profile and administration service."""

import logging
import math
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AccountNotFound
from app.core.security import hash_password
from app.models.user import User, UserRole
from app.schemas.common import Page
from app.schemas.user import ProfileUpdate, UserResponse, normalize_email
from app.services.refresh_token_service import RefreshTokenService

logger = logging.getLogger(__name__)


class UserService:
    """Profile edits for the caller, account management for admins."""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise AccountNotFound()
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        if data.name is not None:
            user.name = data.name.strip()
        if data.avatar is not None:
            user.avatar = str(data.avatar)

        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        email_verified: Optional[bool] = None,
    ) -> Page[UserResponse]:
        """List accounts newest first, filtered and paginated."""
        filters = []
        if search:
            pattern = f"%{search.strip().lower()}%"
            filters.append(or_(func.lower(User.name).like(pattern), User.email.like(pattern)))
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)
        if email_verified is not None:
            filters.append(User.email_verified == email_verified)

        total_result = await db.execute(select(func.count(User.id)).where(*filters))
        total = total_result.scalar() or 0

        result = await db.execute(
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = result.scalars().all()

        return Page[UserResponse](
            items=[UserResponse.model_validate(u) for u in users],
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit) if total > 0 else 1,
        )

    @staticmethod
    async def set_status(db: AsyncSession, user_id: str, is_active: bool) -> User:
        """Activate or deactivate an account. Deactivation ends all its sessions."""
        user = await UserService.get_user(db, user_id)
        user.is_active = is_active
        await db.flush()

        if not is_active:
            revoked = await RefreshTokenService.revoke_all_for_user(db, user.id)
            logger.info(f"Deactivated user {user.id[:8]}..., {revoked} session(s) revoked")
        else:
            logger.info(f"Reactivated user {user.id[:8]}...")

        await db.refresh(user)
        return user

    @staticmethod
    async def set_role(db: AsyncSession, user_id: str, role: UserRole) -> User:
        role = UserRole(role)
        user = await UserService.get_user(db, user_id)
        user.role = role
        await db.flush()
        await db.refresh(user)
        logger.info(f"Role of user {user.id[:8]}... set to {role.value}")
        return user

    @staticmethod
    async def create_admin(db: AsyncSession, name: str, email: str, password: str) -> User:
        """Create an administrator, or promote the existing account with this email."""
        email = normalize_email(email)
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                name=name,
                email=email,
                hashed_password=hash_password(password),
                role=UserRole.ADMIN,
                is_active=True,
                email_verified=True,
            )
            db.add(user)
        else:
            user.role = UserRole.ADMIN
            user.is_active = True

        await db.flush()
        await db.refresh(user)
        logger.info(f"Administrator {user.id[:8]}... ready")
        return user
