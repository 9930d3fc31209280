# src/constella/models/__init__.py
"""SQLAlchemy models for the Constella services."""

from .merchant import Merchant
from .payment_request import PaymentRequest, PaymentStatus
from .shopper import ConsumedNonce, Shopper
from .wallet import Authenticator, WalletUser

PAYMENTS_TABLES = [Merchant.__table__, PaymentRequest.__table__]
STOREFRONT_TABLES = [Shopper.__table__, ConsumedNonce.__table__]
WALLET_TABLES = [WalletUser.__table__, Authenticator.__table__]

__all__ = [
    "Merchant",
    "PaymentRequest", "PaymentStatus",
    "Shopper", "ConsumedNonce",
    "WalletUser", "Authenticator",
    "PAYMENTS_TABLES", "STOREFRONT_TABLES", "WALLET_TABLES",
]
