"""Tests for UserService administration helpers."""

import pytest

from app.core.errors import AccountNotFound
from app.models.user import UserRole
from app.services.auth_service import AuthService
from app.services.refresh_token_service import RefreshTokenService
from app.services.user_service import UserService
from tests.conftest import PASSWORD


class TestCreateAdmin:

    @pytest.mark.asyncio
    async def test_creates_verified_admin(self, db, database):
        admin = await UserService.create_admin(db, "Root", " Root@Example.com ", PASSWORD)
        await db.commit()

        assert admin.email == "root@example.com"
        assert admin.role == UserRole.ADMIN
        assert admin.email_verified is True
        assert await AuthService.login(db, "root@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_promotes_existing_account(self, db, make_user):
        user = await make_user(is_active=False)

        admin = await UserService.create_admin(db, "Ignored", "alice@example.com", "Other1!x")
        await db.commit()

        assert admin.id == user.id
        assert admin.role == UserRole.ADMIN
        assert admin.is_active is True
        # The existing password is kept
        assert await AuthService.login(db, "alice@example.com", PASSWORD)


class TestStatusAndRole:

    @pytest.mark.asyncio
    async def test_deactivate_revokes_tokens(self, db, make_user):
        user = await make_user()
        await AuthService.create_session(db, user)
        await AuthService.create_session(db, user)
        await db.commit()

        await UserService.set_status(db, user.id, False)
        await db.commit()

        assert await RefreshTokenService.count_active(db, user.id) == 0

    @pytest.mark.asyncio
    async def test_set_role_accepts_plain_value(self, db, make_user):
        user = await make_user()
        updated = await UserService.set_role(db, user.id, "admin")
        assert updated.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_unknown_user(self, db, database):
        with pytest.raises(AccountNotFound):
            await UserService.set_status(db, "missing", True)
        with pytest.raises(ValueError):
            await UserService.set_role(db, "missing", "superuser")
