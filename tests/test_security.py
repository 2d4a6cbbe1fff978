"""
Tests for password hashing and access tokens
"""
import pytest
from jose import jwt

from civicpulse.core.settings import settings
from civicpulse.utils.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    normalize_email,
    verify_password,
)


def test_password_round_trip():
    stored = hash_password("secret123")
    assert stored.startswith("$2b$")
    assert verify_password("secret123", stored)
    assert not verify_password("secret124", stored)


def test_hashes_are_salted():
    assert hash_password("secret123") != hash_password("secret123")


@pytest.mark.parametrize("stored", [
    None,
    "",
    "pbkdf2_sha256$abc$salt$deadbeef",
    "garbage",
    "$2b$12$tooShort",
])
def test_unreadable_hash_never_verifies(stored):
    assert verify_password("secret123", stored) is False


def test_normalize_email():
    assert normalize_email("  Asha@Example.COM ") == "asha@example.com"
    assert normalize_email(None) == ""


def test_token_claims():
    token = create_access_token({"id": "u1", "name": "Asha", "email": "asha@example.com"})
    claims = decode_access_token(token)
    assert claims["sub"] == "u1"
    assert claims["email"] == "asha@example.com"


def test_expired_token():
    token = create_access_token({"id": "u1"}, expires_minutes=-1)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_signed_with_another_secret():
    token = jwt.encode({"sub": "u1"}, "some-other-secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_without_subject():
    token = jwt.encode({"name": "Asha"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)
