"""Merchant signup and credential checks."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constella.core.errors import AuthenticationError, AuthorizationError, ConflictError
from constella.core.security import hash_password, verify_password
from constella.models import Merchant
from constella.schemas.merchant import SignupRequest

logger = logging.getLogger(__name__)


def get_merchant(db: Session, merchant_id: str) -> Merchant | None:
    return db.get(Merchant, merchant_id)


def signup_merchant(db: Session, payload: SignupRequest) -> Merchant:
    """Create a merchant account with a bcrypt-hashed password."""
    if db.scalar(select(Merchant).where(Merchant.username == payload.username)):
        raise ConflictError("Username already exists")
    if payload.email and db.scalar(select(Merchant).where(Merchant.email == payload.email)):
        raise ConflictError("Email already exists")

    merchant = Merchant(
        username=payload.username,
        email=payload.email,
        name=payload.name,
        password=hash_password(payload.password),
    )
    db.add(merchant)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("Username already exists") from err
    db.refresh(merchant)
    logger.info("Created merchant %s (%s)", merchant.id, merchant.username)
    return merchant


def authenticate_merchant(db: Session, username: str, password: str) -> Merchant:
    """Return the merchant for valid credentials.

    Raises:
        AuthenticationError: For an unknown username or wrong password.
        AuthorizationError: If the account has been deactivated.
    """
    merchant = db.scalar(select(Merchant).where(Merchant.username == username))
    if merchant is None:
        raise AuthenticationError("Invalid credentials")
    if not merchant.is_active:
        raise AuthorizationError("Account is deactivated")
    if not verify_password(password, merchant.password):
        raise AuthenticationError("Invalid credentials")
    return merchant
