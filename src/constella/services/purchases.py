"""Shopper purchase completion backed by one-time payment nonces.

A nonce completes at most one purchase. The check for an existing
:class:`ConsumedNonce` rejects obvious replays early; the unique constraint on
its insert decides concurrent attempts. The insert and the shopper update
share one transaction, so a losing attempt leaves the shopper untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constella.core.errors import BadRequestError, ConflictError, NotFoundError
from constella.db.time import utcnow
from constella.models import ConsumedNonce, Shopper
from constella.services.payments_client import PaymentsClient

logger = logging.getLogger(__name__)

NONCE_CONSUMED = "Nonce already consumed"


@dataclass(frozen=True)
class PurchaseResult:
    amount: float
    user: Shopper


def get_shopper(db: Session, user_id: str) -> Shopper:
    shopper = db.get(Shopper, user_id)
    if shopper is None:
        raise NotFoundError("User not found")
    return shopper


def is_nonce_consumed(db: Session, nonce: str) -> bool:
    return db.scalar(select(ConsumedNonce.id).where(ConsumedNonce.nonce == nonce)) is not None


async def complete_purchase(
    db: Session,
    client: PaymentsClient,
    *,
    user_id: str,
    nonce: str,
    merchant_username: str,
    merchant_password: str,
    min_amount: float,
) -> PurchaseResult:
    """Spend ``nonce`` for ``user_id`` and mark the shopper as purchased.

    Raises:
        ConflictError: If the nonce was already consumed, before or during
            this call.
        BadRequestError: If the claimed amount is below ``min_amount``.
        PaymentsServerError: If merchant login or the claim fails upstream.
    """
    shopper = get_shopper(db, user_id)
    if is_nonce_consumed(db, nonce):
        raise ConflictError(NONCE_CONSUMED)

    token = await client.login(merchant_username, merchant_password)
    claimed = await client.claim(token, nonce)

    if claimed.amount < min_amount:
        raise BadRequestError(
            "Insufficient payment amount",
            extra={"required": min_amount, "received": claimed.amount},
        )

    db.add(ConsumedNonce(nonce=nonce, user_id=shopper.id, amount=claimed.amount))
    try:
        db.flush()
    except IntegrityError as err:
        db.rollback()
        logger.info("Nonce %s lost a concurrent consumption race", nonce)
        raise ConflictError(NONCE_CONSUMED) from err

    shopper.has_purchased = True
    shopper.purchased_at = utcnow()
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError(NONCE_CONSUMED) from err

    db.refresh(shopper)
    logger.info("Shopper %s completed purchase with nonce %s", shopper.id, nonce)
    return PurchaseResult(amount=claimed.amount, user=shopper)


def record_direct_purchase(db: Session, user_id: str) -> Shopper:
    """Mark the shopper as purchased without a payment nonce."""
    shopper = get_shopper(db, user_id)
    shopper.has_purchased = True
    shopper.purchased_at = utcnow()
    db.commit()
    db.refresh(shopper)
    return shopper


def reset_purchase(db: Session, user_id: str) -> Shopper:
    """Clear the shopper's purchase flags; consumed nonces stay consumed."""
    shopper = get_shopper(db, user_id)
    shopper.has_purchased = False
    shopper.purchased_at = None
    db.commit()
    db.refresh(shopper)
    return shopper
