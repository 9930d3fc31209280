"""Payment request schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel, Pagination


class NonceRequest(ApiModel):
    """Body of the create and claim calls."""

    nonce: str = Field(..., min_length=1, max_length=255, description="Caller-supplied nonce")


class PaymentRequestOut(ApiModel):
    """Public view of a payment request; the wallet private key is never exposed."""

    id: str
    nonce: str
    wallet_address: str
    amount: float
    status: str
    created_at: datetime


class ClaimedPaymentRequestOut(PaymentRequestOut):
    merchant_id: str | None = None
    updated_at: datetime


class PaymentRequestEnvelope(ApiModel):
    payment_request: PaymentRequestOut


class CreatePaymentResponse(ApiModel):
    message: str
    payment_request: PaymentRequestOut


class ClaimPaymentResponse(ApiModel):
    message: str
    payment_request: ClaimedPaymentRequestOut


class BalanceResponse(ApiModel):
    merchant_id: str
    total_balance: float
    claimed_requests_count: int


class ClaimedListResponse(ApiModel):
    claimed_requests: list[ClaimedPaymentRequestOut]
    pagination: Pagination
