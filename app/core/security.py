"""
Token issuing and password hashing primitives.

Access tokens are signed JWTs scoped by a ``type`` claim. Refresh, password
reset and email verification tokens are opaque random strings; only their
SHA-256 digest is ever persisted.
"""

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import InvalidToken

settings = get_settings()

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds,
)

# Verified against when the email is unknown so both login failures cost the same
FAKE_HASHED_PASSWORD = pwd_context.hash("this_account_never_exists_storefront")


# ─── Password ────────────────────────────────
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ─── Access tokens (JWT) ─────────────────────
def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": str(getattr(role, "value", role)),
        "type": ACCESS_TOKEN_TYPE,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature, expiry and purpose of an access token.

    Raises:
        InvalidToken: malformed, expired, badly signed or not an access token.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise InvalidToken()

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise InvalidToken()
    return payload


# ─── Opaque tokens ───────────────────────────
def generate_opaque_token() -> str:
    return secrets.token_urlsafe(48)


def hash_token(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()
