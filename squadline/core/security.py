"""Password hashing and JWT issuance/verification for authentication."""

import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from squadline.core.config import settings

# Bcrypt cost (rounds). Existing hashes in the legacy tables were produced with 10.
BCRYPT_ROUNDS = 10

# bcrypt only reads the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

# $2a$/$2b$/$2y$ prefix, two-digit cost, 53 chars of salt + digest.
BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}$")

EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ("userId", "role", "iat", "exp")


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """Signature is valid but exp has passed."""


class TokenInvalidError(TokenError):
    """Malformed token, bad signature, wrong algorithm or missing claims."""


def looks_like_hash(value: str | None) -> bool:
    """True if value is already a bcrypt hash (so it must not be hashed again)."""
    if not value:
        return False
    return BCRYPT_HASH_RE.match(value) is not None


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. A missing hash never matches."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def token_lifetime() -> timedelta:
    return timedelta(days=settings.JWT_EXPIRE_DAYS)


def issue_token(user_id: int, role: str, *, now: datetime | None = None) -> str:
    """
    Create a signed bearer token.

    Claims: userId, role (origin tag or role label), iat, exp and a random
    128-bit jti so two tokens issued in the same second still differ.
    """
    issued_at = now or datetime.now(UTC)
    expire = issued_at + token_lifetime()
    payload: dict[str, Any] = {
        "userId": int(user_id),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "jti": secrets.token_hex(16),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a bearer token; return its claims.

    Raises TokenExpiredError when exp has elapsed and TokenInvalidError for
    every other failure, so callers can word the two cases differently.
    """
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except jwt.PyJWTError as e:
        raise TokenInvalidError(str(e)) from e

    missing = [c for c in REQUIRED_CLAIMS if c not in claims]
    if missing:
        raise TokenInvalidError(f"Token is missing claims: {', '.join(missing)}")
    try:
        claims["userId"] = int(claims["userId"])
    except (TypeError, ValueError) as e:
        raise TokenInvalidError("Token userId is not numeric") from e
    if not isinstance(claims["role"], str) or not claims["role"]:
        raise TokenInvalidError("Token role is empty")
    return claims


def token_remaining_seconds(claims: dict[str, Any], now: datetime | None = None) -> int:
    """Seconds until the token's exp (negative once expired)."""
    current = now or datetime.now(UTC)
    return int(claims["exp"]) - int(current.timestamp())
