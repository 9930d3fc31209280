"""Password hashing and JWT helpers.

Every service signs its own tokens with its own secret and stamps a ``type``
claim on them, so a shopper token can never stand in for a merchant token even
if two secrets were accidentally configured to the same value.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from constella.core.errors import AuthenticationError, AuthorizationError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MERCHANT_TOKEN = "merchant"
SHOPPER_TOKEN = "shopper"
WALLET_TOKEN = "wallet"
OAUTH_STATE_TOKEN = "oauth_state"


def hash_password(password: str) -> str:
    """Return a bcrypt hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Check ``password`` against a stored bcrypt hash."""
    return pwd_context.verify(password, hashed)


def create_access_token(
    subject: str,
    *,
    secret: str,
    token_type: str,
    expires_minutes: float,
    algorithm: str = "HS256",
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed JWT for ``subject``."""
    now = datetime.now(UTC)
    to_encode: dict[str, Any] = {"sub": subject, "type": token_type}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["iat"] = now
    to_encode["exp"] = now + timedelta(minutes=expires_minutes)
    encoded_jwt: str = jwt.encode(to_encode, secret, algorithm=algorithm)
    return encoded_jwt


def decode_access_token(
    token: str,
    *,
    secret: str,
    expected_type: str,
    algorithm: str = "HS256",
) -> dict[str, Any]:
    """Decode and validate a JWT.

    Raises:
        AuthenticationError: If the token is malformed, expired, forged or
            carries no subject.
        AuthorizationError: If the token belongs to another principal type.
    """
    try:
        payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as err:
        raise AuthenticationError("Invalid or expired token") from err

    if not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    if payload.get("type") != expected_type:
        raise AuthorizationError(f"{expected_type.capitalize()} access required")
    return payload
