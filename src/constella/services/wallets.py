"""Ethereum-style key pair generation."""

from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account
from eth_utils import is_address


@dataclass(frozen=True)
class WalletInfo:
    """A freshly generated address and its hex-encoded private key."""

    address: str
    private_key: str


def generate_wallet() -> WalletInfo:
    """Create a random account; no chain interaction takes place."""
    account = Account.create()
    key_hex = account.key.hex().removeprefix("0x")
    return WalletInfo(address=account.address, private_key=f"0x{key_hex}")


def is_valid_address(value: str) -> bool:
    """Return True if ``value`` is a well-formed Ethereum address."""
    return bool(is_address(value))
