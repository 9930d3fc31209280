"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from constella.core.errors import AuthenticationError, NotFoundError
from constella.core.security import (
    MERCHANT_TOKEN,
    SHOPPER_TOKEN,
    WALLET_TOKEN,
    decode_access_token,
)
from constella.core.settings import Settings
from constella.db.session import get_db
from constella.models import Merchant, WalletUser
from constella.services.merchants import get_merchant
from constella.services.passkeys import PasskeyService
from constella.services.payments_client import PaymentsClient
from constella.services.pricing import AmountPolicy

# HTTP Bearer scheme; missing credentials are reported by the dependencies below.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_settings_dep(request: Request) -> Settings:
    """Return the settings the running application was built with."""
    settings: Settings = request.app.state.settings
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings_dep)]


def _require_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return credentials.credentials


def get_current_merchant(
    credentials: BearerDep,
    settings: SettingsDep,
    db: SessionDep,
) -> Merchant:
    """Resolve the merchant behind a payments-server bearer token.

    Raises:
        AuthenticationError: If the token is missing, invalid or the merchant
            no longer exists.
        AuthorizationError: If the token was not issued to a merchant.
    """
    payload = decode_access_token(
        _require_token(credentials),
        secret=settings.payments_jwt_secret,
        expected_type=MERCHANT_TOKEN,
        algorithm=settings.jwt_algorithm,
    )
    merchant = get_merchant(db, payload["sub"])
    if merchant is None:
        raise AuthenticationError("Merchant not found")
    return merchant


def get_current_shopper_id(credentials: BearerDep, settings: SettingsDep) -> str:
    """Return the shopper ID carried by a storefront bearer token."""
    payload = decode_access_token(
        _require_token(credentials),
        secret=settings.storefront_jwt_secret,
        expected_type=SHOPPER_TOKEN,
        algorithm=settings.jwt_algorithm,
    )
    return str(payload["sub"])


def get_current_wallet_user(
    credentials: BearerDep,
    settings: SettingsDep,
    db: SessionDep,
) -> WalletUser:
    payload = decode_access_token(
        _require_token(credentials),
        secret=settings.wallet_jwt_secret,
        expected_type=WALLET_TOKEN,
        algorithm=settings.jwt_algorithm,
    )
    user = db.get(WalletUser, payload["sub"])
    if user is None or not user.has_completed_registration:
        raise NotFoundError("User not found")
    return user


def require_admin_token(
    settings: SettingsDep,
    admin_token: Annotated[str | None, Header(alias="admin-token")] = None,
) -> None:
    """Guard admin routes with the static ``admin-token`` header."""
    if not admin_token:
        raise AuthenticationError("No admin token provided")
    if not settings.wallet_admin_key or admin_token != settings.wallet_admin_key:
        raise AuthenticationError("Invalid admin token")


def get_amount_policy(request: Request) -> AmountPolicy:
    policy: AmountPolicy = request.app.state.amount_policy
    return policy


def get_payments_client(request: Request) -> PaymentsClient:
    client: PaymentsClient = request.app.state.payments_client
    return client


def get_passkey_service(request: Request) -> PasskeyService:
    service: PasskeyService = request.app.state.passkeys
    return service


CurrentMerchantDep = Annotated[Merchant, Depends(get_current_merchant)]
CurrentShopperIdDep = Annotated[str, Depends(get_current_shopper_id)]
CurrentWalletUserDep = Annotated[WalletUser, Depends(get_current_wallet_user)]
AmountPolicyDep = Annotated[AmountPolicy, Depends(get_amount_policy)]
PaymentsClientDep = Annotated[PaymentsClient, Depends(get_payments_client)]
PasskeyServiceDep = Annotated[PasskeyService, Depends(get_passkey_service)]
AdminDep = Depends(require_admin_token)
