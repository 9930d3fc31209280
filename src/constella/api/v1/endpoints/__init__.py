# src/constella/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .merchant_auth import router as merchant_auth_router
from .payments import router as payments_router
from .storefront import router as storefront_router
from .storefront_auth import router as storefront_auth_router
from .system import router as system_router
from .wallet_users import router as wallet_users_router

__all__ = [
    "merchant_auth_router",
    "payments_router",
    "storefront_router",
    "storefront_auth_router",
    "system_router",
    "wallet_users_router",
]
