"""Constella payment, storefront and passkey wallet services."""

__version__ = "0.1.0"
