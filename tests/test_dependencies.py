"""Tests for the authentication and authorization dependencies."""

import asyncio
import logging
from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy import update

from app.core.dependencies import (
    Identity,
    authenticate,
    check_roles,
    optional_authenticate,
    resolve_access_token,
)
from app.core.errors import (
    AccountDeactivated,
    AccountNotFound,
    Forbidden,
    InvalidToken,
    Unauthenticated,
)
from app.core.security import create_access_token
from app.models.user import User, UserRole


def _request():
    return SimpleNamespace(state=SimpleNamespace(), method="GET", url=SimpleNamespace(path="/test"))


def _credentials(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _token_for(user, **kwargs):
    return create_access_token(user.id, user.email, user.role, **kwargs)


class TestCheckRoles:

    def test_allowed_role_passes(self):
        user = SimpleNamespace(role=UserRole.ADMIN)
        assert check_roles(user, [UserRole.ADMIN]) is user

    def test_missing_role_forbidden(self):
        with pytest.raises(Forbidden) as exc_info:
            check_roles(SimpleNamespace(role=UserRole.USER), [UserRole.ADMIN])
        assert exc_info.value.status_code == 403

    def test_any_of_several_roles(self):
        user = SimpleNamespace(role=UserRole.USER)
        assert check_roles(user, [UserRole.USER, UserRole.ADMIN]) is user

    def test_no_identity_is_unauthenticated(self):
        with pytest.raises(Unauthenticated) as exc_info:
            check_roles(None, [UserRole.USER])
        assert exc_info.value.status_code == 401


class TestResolveAccessToken:

    @pytest.mark.asyncio
    async def test_valid_token(self, db, make_user):
        user = await make_user()
        resolved = await resolve_access_token(db, _token_for(user))
        assert resolved.id == user.id

    @pytest.mark.asyncio
    async def test_token_expires(self, db, make_user):
        user = await make_user()
        token = _token_for(user, expires_delta=timedelta(seconds=1))

        assert await resolve_access_token(db, token)
        await asyncio.sleep(2.1)

        with pytest.raises(InvalidToken):
            await resolve_access_token(db, token)

    @pytest.mark.asyncio
    async def test_deleted_account(self, db, database):
        token = create_access_token("gone", "gone@example.com", UserRole.USER)
        with pytest.raises(AccountNotFound) as exc_info:
            await resolve_access_token(db, token)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_deactivated_account(self, db, make_user):
        user = await make_user()
        token = _token_for(user)
        await db.execute(update(User).where(User.id == user.id).values(is_active=False))
        await db.commit()

        with pytest.raises(AccountDeactivated):
            await resolve_access_token(db, token)


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_attaches_identity(self, db, make_user):
        user = await make_user(role=UserRole.ADMIN)
        request = _request()

        resolved = await authenticate(request, db, _credentials(_token_for(user)))

        assert resolved.id == user.id
        assert request.state.identity == Identity(id=user.id, email=user.email, role=UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_missing_header(self, db, database):
        with pytest.raises(Unauthenticated):
            await authenticate(_request(), db, None)


class TestOptionalAuthenticate:

    @pytest.mark.asyncio
    async def test_no_header_is_anonymous(self, db, database):
        request = _request()
        assert await optional_authenticate(request, db, None) is None
        assert not hasattr(request.state, "identity")

    @pytest.mark.asyncio
    async def test_invalid_token_is_logged_and_ignored(self, db, database, caplog):
        request = _request()
        with caplog.at_level(logging.WARNING, logger="app.core.dependencies"):
            assert await optional_authenticate(request, db, _credentials("garbage")) is None

        assert "Ignoring bearer token" in caplog.text
        assert not hasattr(request.state, "identity")

    @pytest.mark.asyncio
    async def test_valid_token_attaches_identity(self, db, make_user):
        user = await make_user()
        request = _request()

        resolved = await optional_authenticate(request, db, _credentials(_token_for(user)))

        assert resolved.id == user.id
        assert request.state.identity.role == UserRole.USER
