# src/constella/services/__init__.py
"""Business logic services for the Constella backends."""

from .passkeys import PasskeyService
from .payments_client import PaymentsClient, PaymentsServerError
from .pricing import AmountPolicy, FixedAmountPolicy

__all__ = [
    "AmountPolicy",
    "FixedAmountPolicy",
    "PasskeyService",
    "PaymentsClient",
    "PaymentsServerError",
]
