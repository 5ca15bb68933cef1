"""
Request dependencies: database session and the authorization gate.

``authenticate`` verifies the bearer access token and resolves it to a live
account; ``authorize(*roles)`` layers a role check on top of it;
``optional_authenticate`` never fails the request.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AccountDeactivated,
    AccountNotFound,
    AppError,
    Forbidden,
    Unauthenticated,
)
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
BearerCredentials = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


@dataclass(frozen=True)
class Identity:
    """What downstream handlers may know about the caller."""
    id: str
    email: str
    role: UserRole


async def resolve_access_token(db: AsyncSession, token: str) -> User:
    """Verify an access token and load the live account it names."""
    payload = decode_access_token(token)

    user = await db.get(User, payload["sub"])
    if user is None:
        raise AccountNotFound(status_code=401)
    if not user.is_active:
        raise AccountDeactivated()
    return user


def _attach(request: Request, user: User) -> None:
    request.state.identity = Identity(id=user.id, email=user.email, role=user.role)


async def authenticate(request: Request, db: DbSession, credentials: BearerCredentials) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    user = await resolve_access_token(db, credentials.credentials)
    _attach(request, user)
    return user


async def optional_authenticate(
    request: Request,
    db: DbSession,
    credentials: BearerCredentials,
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None

    try:
        user = await resolve_access_token(db, credentials.credentials)
    except AppError as exc:
        # A present but unusable token is worth noticing; the request still proceeds
        logger.warning(f"Ignoring bearer token on {request.method} {request.url.path}: {exc.message}")
        return None

    _attach(request, user)
    return user


def check_roles(user: Optional[User], allowed: Iterable[UserRole]) -> User:
    """Pure role predicate: raises unless ``user`` holds one of ``allowed``."""
    if user is None:
        raise Unauthenticated("Access denied. User not authenticated.")
    if user.role not in set(allowed):
        raise Forbidden()
    return user


def authorize(*roles: UserRole):
    """Build a dependency admitting only authenticated callers with one of ``roles``."""
    allowed = frozenset(UserRole(role) for role in roles)

    async def role_gate(user: Annotated[User, Depends(authenticate)]) -> User:
        return check_roles(user, allowed)

    return role_gate


CurrentUser = Annotated[User, Depends(authenticate)]
OptionalUser = Annotated[Optional[User], Depends(optional_authenticate)]
AdminUser = Annotated[User, Depends(authorize(UserRole.ADMIN))]
