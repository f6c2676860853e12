"""
Admin gate: shared-password check and signed, expiring admin session tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from ..config import get_settings

ADMIN_TOKEN_TYPE = "admin"


class AdminTokenData(BaseModel):
    """Decoded admin session token."""
    subject: str
    expires_at: datetime


class AdminToken(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The hashed password, suitable for ADMIN_PASSWORD_HASH
    """
    return pwd_context.hash(password)


def verify_admin_password(password: str) -> bool:
    """
    Check a password against the configured admin password hash.

    Returns:
        False when no hash is configured or the password does not match
    """
    password_hash = get_settings().ADMIN_PASSWORD_HASH
    if not password_hash or not password:
        return False
    return pwd_context.verify(password, password_hash)


def create_admin_token(expires_delta: Optional[timedelta] = None) -> AdminToken:
    """
    Create a signed admin session token.

    Args:
        expires_delta: Optional custom lifetime

    Returns:
        The encoded token and its lifetime in seconds
    """
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES)
    now = datetime.now(timezone.utc)

    encoded_jwt = jwt.encode(
        {
            "sub": "admin",
            "type": ADMIN_TOKEN_TYPE,
            "iat": now,
            "exp": now + lifetime,
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return AdminToken(access_token=encoded_jwt, expires_in=int(lifetime.total_seconds()))


def verify_admin_token(token: str) -> Optional[AdminTokenData]:
    """
    Verify and decode an admin session token.

    Args:
        token: The JWT to verify

    Returns:
        AdminTokenData if the token is valid and unexpired, None otherwise
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if payload.get("type") != ADMIN_TOKEN_TYPE or payload.get("sub") is None:
        return None

    return AdminTokenData(
        subject=payload["sub"],
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    )
