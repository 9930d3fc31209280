"""Payment request lifecycle: creation, merchant claims and balances."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import ColumnElement, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constella.core.errors import ConflictError, NotFoundError
from constella.models import PaymentRequest, PaymentStatus
from constella.services.pricing import AmountPolicy
from constella.services.wallets import generate_wallet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimOutcome:
    """Result of a claim; ``reclaimed`` is True when the caller already held it."""

    payment_request: PaymentRequest
    reclaimed: bool


def get_payment_request(db: Session, nonce: str) -> PaymentRequest | None:
    """Return the payment request for ``nonce`` if one exists."""
    return db.scalar(select(PaymentRequest).where(PaymentRequest.nonce == nonce))


def create_payment_request(db: Session, nonce: str) -> PaymentRequest:
    """Allocate a fresh wallet for ``nonce`` and store a pending request.

    Raises:
        ConflictError: If a request with this nonce already exists, including
            when a concurrent creator wins the unique constraint.
    """
    if get_payment_request(db, nonce) is not None:
        raise ConflictError("Payment request with this nonce already exists")

    wallet = generate_wallet()
    payment_request = PaymentRequest(
        nonce=nonce,
        wallet_address=wallet.address,
        wallet_private_key=wallet.private_key,
        amount=0.0,
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment_request)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("Payment request with this nonce already exists") from err
    db.refresh(payment_request)
    logger.info("Created payment request %s for wallet %s", payment_request.id, wallet.address)
    return payment_request


def claim_payment_request(
    db: Session,
    nonce: str,
    merchant_id: str,
    policy: AmountPolicy,
) -> ClaimOutcome:
    """Claim (or re-claim) a payment request on behalf of ``merchant_id``.

    The write only matches a pending row or one already held by the caller,
    so of two merchants racing for the same pending request exactly one
    update lands.

    Raises:
        NotFoundError: If no request exists for ``nonce``.
        ConflictError: If another merchant holds the claim.
    """
    payment_request = get_payment_request(db, nonce)
    if payment_request is None:
        raise NotFoundError("Payment request not found")
    if payment_request.is_claimed and payment_request.merchant_id != merchant_id:
        raise ConflictError("Payment request already claimed by another merchant")

    reclaimed = payment_request.is_claimed
    amount = policy.amount_for(payment_request)

    result = db.execute(
        update(PaymentRequest)
        .where(
            PaymentRequest.nonce == nonce,
            or_(
                PaymentRequest.status == PaymentStatus.PENDING.value,
                PaymentRequest.merchant_id == merchant_id,
            ),
        )
        .values(
            status=PaymentStatus.CLAIMED.value,
            merchant_id=merchant_id,
            amount=amount,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ConflictError("Payment request already claimed by another merchant")
    db.commit()

    db.refresh(payment_request)
    logger.info(
        "Merchant %s %s payment request %s (amount=%s)",
        merchant_id,
        "re-claimed" if reclaimed else "claimed",
        payment_request.id,
        amount,
    )
    return ClaimOutcome(payment_request=payment_request, reclaimed=reclaimed)


def _claimed_by(merchant_id: str) -> tuple[ColumnElement[bool], ColumnElement[bool]]:
    return (
        PaymentRequest.merchant_id == merchant_id,
        PaymentRequest.status == PaymentStatus.CLAIMED.value,
    )


def merchant_balance(db: Session, merchant_id: str) -> tuple[float, int]:
    """Return the summed amount and count of the merchant's claimed requests."""
    total, count = db.execute(
        select(
            func.coalesce(func.sum(PaymentRequest.amount), 0.0),
            func.count(PaymentRequest.id),
        ).where(*_claimed_by(merchant_id))
    ).one()
    return float(total), int(count)


def list_claimed(
    db: Session,
    merchant_id: str,
    *,
    page: int = 1,
    limit: int = 10,
) -> tuple[Sequence[PaymentRequest], int]:
    """Return one page of claimed requests, most recently updated first."""
    total = db.scalar(
        select(func.count(PaymentRequest.id)).where(*_claimed_by(merchant_id))
    ) or 0
    rows = db.scalars(
        select(PaymentRequest)
        .where(*_claimed_by(merchant_id))
        .order_by(PaymentRequest.updated_at.desc(), PaymentRequest.id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return rows, int(total)
