"""
Shared fixtures.

The environment is set before any ``app`` import so the cached settings,
the engine and the password context all pick up the test values.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-the-storefront-suite"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from app.core.rate_limiter import rate_limiter
from app.core.security import hash_password
from app.db import AsyncSessionLocal, Base, engine
from app.models.user import User, UserRole
from app.services.email_service import EmailService

PASSWORD = "Secret1!"


@pytest_asyncio.fixture
async def database():
    """Fresh tables for every test."""
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    rate_limiter.clear()

    yield

    await engine.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(database):
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mailer():
    """Stand-in for the mail collaborator; inspect ``call_args`` for tokens."""
    return AsyncMock(spec=EmailService)


@pytest.fixture
def make_user():
    """Insert and commit an account directly."""

    async def _make(
        email: str = "alice@example.com",
        password: str = PASSWORD,
        name: str = "Alice",
        role: UserRole = UserRole.USER,
        is_active: bool = True,
    ) -> User:
        async with AsyncSessionLocal() as session:
            user = User(
                name=name,
                email=email,
                hashed_password=hash_password(password),
                role=role,
                is_active=is_active,
                email_verified=False,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
