# src/constella/api/v1/endpoints/storefront.py
"""Storefront account and purchase endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from constella.api.v1.dependencies import (
    CurrentShopperIdDep,
    PaymentsClientDep,
    SessionDep,
    SettingsDep,
)
from constella.schemas.common import MessageResponse
from constella.schemas.payment import NonceRequest
from constella.schemas.storefront import ClaimResponse, PurchaseResponse, ShopperOut
from constella.services import purchases

router = APIRouter(tags=["storefront"])


@router.post("/claim", summary="Complete a purchase with a payment nonce", response_model=ClaimResponse)
async def claim_payment(
    payload: NonceRequest,
    db: SessionDep,
    settings: SettingsDep,
    client: PaymentsClientDep,
    user_id: CurrentShopperIdDep,
) -> ClaimResponse:
    """Consume the nonce once and record the shopper's purchase."""
    result = await purchases.complete_purchase(
        db,
        client,
        user_id=user_id,
        nonce=payload.nonce,
        merchant_username=settings.merchant_username,
        merchant_password=settings.merchant_password,
        min_amount=settings.min_purchase_amount,
    )
    return ClaimResponse(
        message="Payment completed successfully",
        amount=result.amount,
        user=ShopperOut.model_validate(result.user),
    )


@router.get("/user", summary="Current shopper", response_model=ShopperOut)
async def get_user(db: SessionDep, user_id: CurrentShopperIdDep) -> ShopperOut:
    return ShopperOut.model_validate(purchases.get_shopper(db, user_id))


@router.post("/purchase", summary="Record a purchase", response_model=PurchaseResponse)
async def record_purchase(db: SessionDep, user_id: CurrentShopperIdDep) -> PurchaseResponse:
    shopper = purchases.record_direct_purchase(db, user_id)
    return PurchaseResponse(
        message="Purchase recorded successfully",
        user=ShopperOut.model_validate(shopper),
    )


@router.post("/purchase/reset", summary="Clear purchase state", response_model=PurchaseResponse)
async def reset_purchase(db: SessionDep, user_id: CurrentShopperIdDep) -> PurchaseResponse:
    shopper = purchases.reset_purchase(db, user_id)
    return PurchaseResponse(
        message="Purchase state reset successfully",
        user=ShopperOut.model_validate(shopper),
    )


@router.get("/logout", summary="Log out", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logged out successfully")
