# tests/test_core/test_security.py - password hashing and JWT claims

from datetime import timedelta

import pytest
from jose import jwt

from app.core.config import settings
from app.core.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_hash_is_salted_and_verifiable():
    first = hash_password("pw123")
    second = hash_password("pw123")
    assert first != second
    assert verify_password("pw123", first)
    assert verify_password("pw123", second)
    assert not verify_password("pw124", first)


def test_verify_rejects_garbage_hash():
    assert verify_password("pw123", "not-a-bcrypt-hash") is False
    assert verify_password("pw123", "") is False


def test_long_passwords_are_accepted():
    long_password = "x" * 100
    hashed = hash_password(long_password)
    assert verify_password(long_password, hashed)


def test_token_round_trip_carries_id_and_role():
    claims = decode_access_token(create_access_token(42, "admin"))
    assert claims.id == 42
    assert claims.role == "admin"


def test_token_expires_in_configured_window():
    payload = jwt.get_unverified_claims(create_access_token(1, "user"))
    assert set(payload) == {"id", "role", "exp"}


def test_expired_token_rejected():
    token = create_access_token(1, "user", expires_delta=timedelta(seconds=-5))
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_token_signed_with_other_secret_rejected():
    forged = jwt.encode({"id": 1, "role": "admin"}, "another-secret", algorithm=settings.ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_access_token(forged)


def test_missing_or_incomplete_token_rejected():
    with pytest.raises(InvalidTokenError):
        decode_access_token(None)
    incomplete = jwt.encode({"role": "user"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(InvalidTokenError):
        decode_access_token(incomplete)
