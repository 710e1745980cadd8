"""
Security utilities.

Passcode hashing, JWT token creation/validation, magic link and
invitation tokens, Redis key helpers.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt as _bcrypt
from jose import JWTError, jwt

from utsav.core.config import settings


# ---------------------------------------------------------------------------
# Passcode hashing
# ---------------------------------------------------------------------------

def hash_passcode(passcode: str) -> str:
    """Hash an organization passcode using bcrypt."""
    passcode_bytes = passcode.encode("utf-8")[:72]
    salt = _bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return _bcrypt.hashpw(passcode_bytes, salt).decode("utf-8")


def verify_passcode(plain_passcode: str, hashed_passcode: str) -> bool:
    """Verify a plaintext passcode against a bcrypt hash."""
    passcode_bytes = plain_passcode.encode("utf-8")[:72]
    try:
        return _bcrypt.checkpw(passcode_bytes, hashed_passcode.encode("utf-8"))
    except ValueError:
        # Malformed hash stored in the row
        return False


# ---------------------------------------------------------------------------
# JWT tokens
# ---------------------------------------------------------------------------

def create_access_token(user_id: str, jti: str | None = None) -> str:
    """
    Create a short-lived JWT access token.

    Args:
        user_id: The user's UUID as string.
        jti: Optional JWT ID. Generated if not provided.

    Returns:
        Signed JWT string.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "jti": jti or str(uuid.uuid4()),
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(user_id: str) -> tuple[str, str]:
    """
    Create a long-lived JWT refresh token.

    Returns:
        Tuple of (encoded_token, jti) so jti can be stored in Redis.
    """
    now = datetime.now(UTC)
    expire = now + timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    jti = str(uuid.uuid4())
    payload: dict[str, Any] = {
        "sub": user_id,
        "jti": jti,
        "type": "refresh",
        "iat": now,
        "exp": expire,
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, jti


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        JWTError: If the token is invalid, expired, or tampered.
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode an access token, rejecting refresh tokens."""
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    return payload


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Decode a refresh token, rejecting access tokens."""
    payload = decode_token(token)
    if payload.get("type") != "refresh":
        raise JWTError("Not a refresh token")
    return payload


# ---------------------------------------------------------------------------
# One-time tokens
# ---------------------------------------------------------------------------

def create_magic_link_token() -> str:
    """Generate a single-use magic link sign-in token."""
    return secrets.token_urlsafe(32)


def create_invitation_token() -> str:
    """Generate the random token embedded in an invitation link."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Redis key helpers
# ---------------------------------------------------------------------------

def refresh_token_redis_key(user_id: str, jti: str) -> str:
    """Redis key for storing a refresh token. Format: refresh:{user_id}:{jti}"""
    return f"refresh:{user_id}:{jti}"


def blacklist_redis_key(jti: str) -> str:
    """Redis key for a revoked access token JTI. Format: blacklist:{jti}"""
    return f"blacklist:{jti}"


def magic_link_redis_key(token: str) -> str:
    """Redis key for a pending magic link. Format: magic:{token}"""
    return f"magic:{token}"
