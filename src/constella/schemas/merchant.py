"""Merchant account schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignupRequest(ApiModel):
    """Schema for merchant signup."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-zA-Z0-9_-]+$",
        description="Letters, numbers, hyphens and underscores",
    )
    password: str = Field(..., min_length=8, description="At least 8 characters")
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    name: str | None = Field(None, min_length=1, max_length=100)


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class MerchantOut(ApiModel):
    """Public merchant profile."""

    id: str
    username: str
    email: str | None = None
    name: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None


class MerchantAuthResponse(ApiModel):
    message: str
    merchant: MerchantOut
    token: str


class MerchantProfileResponse(ApiModel):
    merchant: MerchantOut
