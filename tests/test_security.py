# mypy: ignore-errors
# tests/test_security.py
"""Tests for password hashing and token helpers."""

from __future__ import annotations

import pytest
from jose import jwt

from constella.core.errors import AuthenticationError, AuthorizationError
from constella.core.security import (
    MERCHANT_TOKEN,
    SHOPPER_TOKEN,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

SECRET = "unit-test-secret"


def test_password_hash_round_trip() -> None:
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_subject_type_and_extra_claims() -> None:
    token = create_access_token(
        "merchant-1",
        secret=SECRET,
        token_type=MERCHANT_TOKEN,
        expires_minutes=5,
        extra_claims={"username": "demo"},
    )

    payload = decode_access_token(token, secret=SECRET, expected_type=MERCHANT_TOKEN)

    assert payload["sub"] == "merchant-1"
    assert payload["type"] == MERCHANT_TOKEN
    assert payload["username"] == "demo"
    assert payload["exp"] > payload["iat"]


def test_expired_token_rejected() -> None:
    token = create_access_token(
        "merchant-1", secret=SECRET, token_type=MERCHANT_TOKEN, expires_minutes=-1
    )
    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(token, secret=SECRET, expected_type=MERCHANT_TOKEN)
    assert exc_info.value.status_code == 401


def test_token_signed_with_other_secret_rejected() -> None:
    token = create_access_token(
        "merchant-1", secret="other-secret", token_type=MERCHANT_TOKEN, expires_minutes=5
    )
    with pytest.raises(AuthenticationError):
        decode_access_token(token, secret=SECRET, expected_type=MERCHANT_TOKEN)


def test_token_of_wrong_type_forbidden() -> None:
    token = create_access_token(
        "shopper-1", secret=SECRET, token_type=SHOPPER_TOKEN, expires_minutes=5
    )
    with pytest.raises(AuthorizationError) as exc_info:
        decode_access_token(token, secret=SECRET, expected_type=MERCHANT_TOKEN)
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Merchant access required"


def test_token_without_subject_rejected() -> None:
    token = jwt.encode({"type": MERCHANT_TOKEN}, SECRET, algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token, secret=SECRET, expected_type=MERCHANT_TOKEN)


def test_garbage_token_rejected() -> None:
    with pytest.raises(AuthenticationError):
        decode_access_token("not-a-jwt", secret=SECRET, expected_type=MERCHANT_TOKEN)
