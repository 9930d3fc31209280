"""Passkey wallet schemas."""

from datetime import datetime
from typing import Any

from pydantic import Field

from .common import ApiModel


class UsernameRequest(ApiModel):
    username: str = Field(..., min_length=3, max_length=64)


class CredentialRequest(ApiModel):
    """A username plus the browser's serialised PublicKeyCredential."""

    username: str = Field(..., min_length=3, max_length=64)
    credential: dict[str, Any]


class WalletUserOut(ApiModel):
    id: str
    username: str
    wallet_address: str | None = None
    balance: float


class WalletSessionResponse(ApiModel):
    token: str
    user: WalletUserOut


class WalletProfile(WalletUserOut):
    last_request_refresh_balance_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UsernameAvailability(ApiModel):
    available: bool
    message: str
