# src/constella/api/v1/endpoints/payments.py
"""Payment request endpoints for the payments server."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from constella.api.v1.dependencies import AmountPolicyDep, CurrentMerchantDep, SessionDep
from constella.core.errors import NotFoundError
from constella.schemas.common import Pagination
from constella.schemas.payment import (
    BalanceResponse,
    ClaimedListResponse,
    ClaimedPaymentRequestOut,
    ClaimPaymentResponse,
    CreatePaymentResponse,
    NonceRequest,
    PaymentRequestEnvelope,
    PaymentRequestOut,
)
from constella.services import payment_requests

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create",
    summary="Create a payment request for a nonce",
    status_code=status.HTTP_201_CREATED,
    response_model=CreatePaymentResponse,
)
async def create_payment_request(payload: NonceRequest, db: SessionDep) -> CreatePaymentResponse:
    """Allocate a one-time wallet address for the nonce (public endpoint)."""
    payment_request = payment_requests.create_payment_request(db, payload.nonce)
    return CreatePaymentResponse(
        message="Payment request created successfully",
        payment_request=PaymentRequestOut.model_validate(payment_request),
    )


@router.post(
    "/claim",
    summary="Claim a payment request",
    response_model=ClaimPaymentResponse,
)
async def claim_payment_request(
    payload: NonceRequest,
    db: SessionDep,
    merchant: CurrentMerchantDep,
    policy: AmountPolicyDep,
) -> ClaimPaymentResponse:
    """Claim the request for the calling merchant, recomputing its amount.

    Re-claiming a request the merchant already holds refreshes the amount;
    a request held by another merchant is a conflict.
    """
    outcome = payment_requests.claim_payment_request(db, payload.nonce, merchant.id, policy)
    message = (
        "Payment request amount updated successfully"
        if outcome.reclaimed
        else "Payment request claimed successfully"
    )
    return ClaimPaymentResponse(
        message=message,
        payment_request=ClaimedPaymentRequestOut.model_validate(outcome.payment_request),
    )


@router.get("/balance", summary="Merchant balance", response_model=BalanceResponse)
async def get_balance(db: SessionDep, merchant: CurrentMerchantDep) -> BalanceResponse:
    total, count = payment_requests.merchant_balance(db, merchant.id)
    return BalanceResponse(
        merchant_id=merchant.id,
        total_balance=total,
        claimed_requests_count=count,
    )


@router.get("/claimed", summary="Claimed payment requests", response_model=ClaimedListResponse)
async def list_claimed(
    db: SessionDep,
    merchant: CurrentMerchantDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ClaimedListResponse:
    rows, total = payment_requests.list_claimed(db, merchant.id, page=page, limit=limit)
    return ClaimedListResponse(
        claimed_requests=[ClaimedPaymentRequestOut.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page, limit=limit, total_count=total),
    )


@router.get("/{nonce}", summary="Look up a payment request", response_model=PaymentRequestEnvelope)
async def get_payment_request(nonce: str, db: SessionDep) -> PaymentRequestEnvelope:
    payment_request = payment_requests.get_payment_request(db, nonce)
    if payment_request is None:
        raise NotFoundError("Payment request not found")
    return PaymentRequestEnvelope(payment_request=PaymentRequestOut.model_validate(payment_request))
