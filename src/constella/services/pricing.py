"""Amount determination for claimed payment requests."""

from __future__ import annotations

from typing import Protocol

from constella.models import PaymentRequest


class AmountPolicy(Protocol):
    """Strategy deciding how much a claimed payment request is worth."""

    def amount_for(self, payment_request: PaymentRequest) -> float:
        ...


class FixedAmountPolicy:
    """Report the same configured amount for every request.

    Stands in until balances are read from chain for ``wallet_address``.
    """

    def __init__(self, amount: float = 0.0) -> None:
        self.amount = float(amount)

    def amount_for(self, payment_request: PaymentRequest) -> float:
        return self.amount
