# src/constella/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire, matching what
the dashboard, storefront and wallet clients send and expect.
"""

from .common import ApiModel, MessageResponse, Pagination
from .merchant import LoginRequest, MerchantAuthResponse, MerchantOut, SignupRequest
from .payment import (
    BalanceResponse,
    ClaimedListResponse,
    NonceRequest,
    PaymentRequestOut,
)
from .storefront import ClaimResponse, ShopperOut
from .wallet import UsernameAvailability, WalletProfile, WalletSessionResponse

__all__ = [
    "ApiModel", "MessageResponse", "Pagination",
    "LoginRequest", "MerchantAuthResponse", "MerchantOut", "SignupRequest",
    "BalanceResponse", "ClaimedListResponse", "NonceRequest", "PaymentRequestOut",
    "ClaimResponse", "ShopperOut",
    "UsernameAvailability", "WalletProfile", "WalletSessionResponse",
]
