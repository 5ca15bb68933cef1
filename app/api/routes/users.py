"""User profile and administration endpoints."""

from typing import Optional

from fastapi import APIRouter, Query

from app.core.dependencies import AdminUser, CurrentUser, DbSession
from app.models.user import UserRole
from app.schemas.common import ApiResponse, Page, envelope
from app.schemas.user import ProfileUpdate, UserResponse, UserRoleUpdate, UserStatusUpdate
from app.services.user_service import UserService

router = APIRouter()


@router.get("/profile", response_model=ApiResponse[UserResponse])
async def get_profile(current_user: CurrentUser):
    return envelope(UserResponse.model_validate(current_user))


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(data: ProfileUpdate, current_user: CurrentUser, db: DbSession):
    """Update the caller's name and/or avatar URL."""
    user = await UserService.update_profile(db, current_user, data)
    return envelope(UserResponse.model_validate(user), "Profile updated successfully")


# ─────────────────────────────────────────────
# Admin only
# ─────────────────────────────────────────────

@router.get("", response_model=ApiResponse[Page[UserResponse]])
async def list_users(
    admin: AdminUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=255),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    email_verified: Optional[bool] = None,
):
    """List all users with pagination and filters."""
    result = await UserService.list_users(
        db,
        page=page,
        limit=limit,
        search=search,
        role=role,
        is_active=is_active,
        email_verified=email_verified,
    )
    return envelope(result)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(user_id: str, admin: AdminUser, db: DbSession):
    user = await UserService.get_user(db, user_id)
    return envelope(UserResponse.model_validate(user))


@router.put("/{user_id}/status", response_model=ApiResponse[UserResponse])
async def update_user_status(user_id: str, body: UserStatusUpdate, admin: AdminUser, db: DbSession):
    """
    Activate or deactivate an account.

    Deactivating revokes all of the account's refresh tokens.
    """
    user = await UserService.set_status(db, user_id, body.is_active)
    return envelope(UserResponse.model_validate(user), "User status updated successfully")


@router.put("/{user_id}/role", response_model=ApiResponse[UserResponse])
async def update_user_role(user_id: str, body: UserRoleUpdate, admin: AdminUser, db: DbSession):
    user = await UserService.set_role(db, user_id, body.role)
    return envelope(UserResponse.model_validate(user), "User role updated successfully")
