"""
Security utilities: password hashing, access tokens and identity normalization.
"""

from civicpulse.core.settings import settings
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import logging

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Access token is malformed, forged or expired."""


def normalize_email(email: Optional[str]) -> str:
    """Emails are compared case-insensitively everywhere (users and ban list)."""
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    """False for a wrong password and for stored hashes passlib cannot read."""
    if not stored_hash:
        return False
    try:
        return pwd_context.verify(password, stored_hash)
    except (ValueError, TypeError) as e:
        logger.warning(f"Unreadable password hash encountered: {e}")
        return False


def create_access_token(user: Dict, expires_minutes: Optional[int] = None) -> str:
    """
    Signed bearer token identifying a user.

    Claims: sub (user id), name, email, iat, exp.
    """
    now = datetime.now(timezone.utc)
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    payload = {
        "sub": user["id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict:
    """
    Verify signature and expiry.

    Raises:
        InvalidTokenError: anything that is not a valid, unexpired token with a subject
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e
    if not claims.get("sub"):
        raise InvalidTokenError("Token has no subject")
    return claims
