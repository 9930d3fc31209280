"""Storefront (demo shop) schemas."""

from datetime import datetime

from .common import ApiModel


class ShopperOut(ApiModel):
    id: str
    email: str
    name: str | None = None
    picture: str | None = None
    has_purchased: bool
    purchased_at: datetime | None = None
    created_at: datetime


class ClaimResponse(ApiModel):
    message: str
    amount: float
    user: ShopperOut


class PurchaseResponse(ApiModel):
    message: str
    user: ShopperOut
