# src/constella/api/v1/endpoints/merchant_auth.py
"""Merchant authentication endpoints for the payments server."""

from __future__ import annotations

from fastapi import APIRouter, status

from constella.api.v1.dependencies import CurrentMerchantDep, SessionDep, SettingsDep
from constella.core.security import MERCHANT_TOKEN, create_access_token
from constella.core.settings import Settings
from constella.models import Merchant
from constella.schemas.merchant import (
    LoginRequest,
    MerchantAuthResponse,
    MerchantOut,
    MerchantProfileResponse,
    SignupRequest,
)
from constella.services.merchants import authenticate_merchant, signup_merchant

router = APIRouter(prefix="/auth", tags=["merchant-auth"])


def issue_merchant_token(settings: Settings, merchant: Merchant) -> str:
    """Create a merchant bearer token."""
    return create_access_token(
        merchant.id,
        secret=settings.payments_jwt_secret,
        token_type=MERCHANT_TOKEN,
        expires_minutes=settings.merchant_token_expire_minutes,
        algorithm=settings.jwt_algorithm,
        extra_claims={"username": merchant.username},
    )


@router.post(
    "/signup",
    summary="Create a merchant account",
    status_code=status.HTTP_201_CREATED,
    response_model=MerchantAuthResponse,
)
async def signup(
    payload: SignupRequest,
    db: SessionDep,
    settings: SettingsDep,
) -> MerchantAuthResponse:
    merchant = signup_merchant(db, payload)
    return MerchantAuthResponse(
        message="Merchant created successfully",
        merchant=MerchantOut.model_validate(merchant),
        token=issue_merchant_token(settings, merchant),
    )


@router.post("/login", summary="Log in as a merchant", response_model=MerchantAuthResponse)
async def login(
    payload: LoginRequest,
    db: SessionDep,
    settings: SettingsDep,
) -> MerchantAuthResponse:
    merchant = authenticate_merchant(db, payload.username, payload.password)
    return MerchantAuthResponse(
        message="Login successful",
        merchant=MerchantOut.model_validate(merchant),
        token=issue_merchant_token(settings, merchant),
    )


@router.get("/me", summary="Current merchant profile", response_model=MerchantProfileResponse)
async def me(merchant: CurrentMerchantDep) -> MerchantProfileResponse:
    return MerchantProfileResponse(merchant=MerchantOut.model_validate(merchant))
