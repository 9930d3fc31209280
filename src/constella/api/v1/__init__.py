# src/constella/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    merchant_auth_router,
    payments_router,
    storefront_auth_router,
    storefront_router,
    system_router,
    wallet_users_router,
)

__all__ = [
    "merchant_auth_router",
    "payments_router",
    "storefront_auth_router",
    "storefront_router",
    "system_router",
    "wallet_users_router",
]
