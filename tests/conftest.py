# mypy: ignore-errors
# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PAYMENTS_JWT_SECRET", "test-payments-secret")
os.environ.setdefault("STOREFRONT_JWT_SECRET", "test-storefront-secret")
os.environ.setdefault("WALLET_JWT_SECRET", "test-wallet-secret")

from constella.api.v1.endpoints.merchant_auth import issue_merchant_token
from constella.api.v1.endpoints.storefront_auth import issue_shopper_token
from constella.core.security import hash_password
from constella.core.settings import Settings
from constella.db.session import Database
from constella.main import create_payments_app, create_storefront_app, create_wallet_app
from constella.models import (
    PAYMENTS_TABLES,
    STOREFRONT_TABLES,
    WALLET_TABLES,
    Merchant,
    Shopper,
)
from constella.services.google_oauth import GoogleOAuthClient
from constella.services.passkeys import PasskeyService
from constella.services.payments_client import PaymentsClient
from constella.services.pricing import FixedAmountPolicy

TEST_DB_URL = "sqlite://"
MERCHANT_PASSWORD = "merchant-password-123"
CLAIM_AMOUNT = 0.25


def _memory_database(tables) -> Database:  # type: ignore[no-untyped-def]
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(TEST_DB_URL, tables, engine=engine)
    database.create_tables()
    return database


@pytest.fixture()
def test_settings() -> Settings:
    """Provide settings isolated from the developer's environment."""
    return Settings(
        payments_jwt_secret="test-payments-secret",
        storefront_jwt_secret="test-storefront-secret",
        wallet_jwt_secret="test-wallet-secret",
        merchant_username="demo-merchant",
        merchant_password=MERCHANT_PASSWORD,
        min_purchase_amount=0.0,
        payments_server_url="http://payments.test",
        frontend_url="http://frontend.test",
        backend_url="http://storefront.test",
        google_client_id="google-client",
        google_client_secret="google-secret",
        rp_id="localhost",
        rp_name="Constella Wallet",
        wallet_origin="http://localhost:5004",
        wallet_admin_key="admin-key",
    )


# --- Payments server ------------------------------------------------------------


@pytest.fixture()
def amount_policy() -> FixedAmountPolicy:
    return FixedAmountPolicy(CLAIM_AMOUNT)


@pytest.fixture()
def payments_database() -> Iterator[Database]:
    database = _memory_database(PAYMENTS_TABLES)
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture()
def payments_app(
    test_settings: Settings,
    payments_database: Database,
    amount_policy: FixedAmountPolicy,
) -> FastAPI:
    return create_payments_app(
        test_settings,
        database=payments_database,
        amount_policy=amount_policy,
    )


@pytest.fixture()
def payments_client(payments_app: FastAPI) -> Iterator[TestClient]:
    with TestClient(payments_app, base_url="http://test") as client:
        yield client


def _create_merchant(
    database: Database, username: str, password: str = MERCHANT_PASSWORD
) -> Merchant:
    with database.session() as session:
        merchant = Merchant(username=username, password=hash_password(password), name=username.title())
        session.add(merchant)
        session.commit()
    return merchant


@pytest.fixture()
def merchant(payments_database: Database) -> Merchant:
    """Create and return the primary merchant."""
    return _create_merchant(payments_database, "merchant_one")


@pytest.fixture()
def other_merchant(payments_database: Database) -> Merchant:
    return _create_merchant(payments_database, "merchant_two")


@pytest.fixture()
def demo_merchant(payments_database: Database, test_settings: Settings) -> Merchant:
    """The merchant the storefront logs in as."""
    return _create_merchant(
        payments_database,
        test_settings.merchant_username,
        test_settings.merchant_password,
    )


@pytest.fixture()
def merchant_headers(test_settings: Settings, merchant: Merchant) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_merchant_token(test_settings, merchant)}"}


@pytest.fixture()
def other_merchant_headers(test_settings: Settings, other_merchant: Merchant) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_merchant_token(test_settings, other_merchant)}"}


# --- Storefront backend ---------------------------------------------------------


@pytest.fixture()
def storefront_database() -> Iterator[Database]:
    database = _memory_database(STOREFRONT_TABLES)
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture()
def upstream_payments(payments_app: FastAPI) -> PaymentsClient:
    """A payments client that talks to the in-process payments server."""
    return PaymentsClient(
        "http://payments.test",
        transport=httpx.ASGITransport(app=payments_app),
    )


@pytest.fixture()
def google_oauth(test_settings: Settings) -> GoogleOAuthClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/token":
            return httpx.Response(200, json={"access_token": "google-access-token"})
        return httpx.Response(
            200,
            json={
                "sub": "google-123",
                "email": "shopper@example.com",
                "name": "Test Shopper",
                "picture": "https://example.com/avatar.png",
            },
        )

    return GoogleOAuthClient(
        test_settings.google_client_id,
        test_settings.google_client_secret,
        test_settings.google_redirect_uri,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture()
def storefront_app(
    test_settings: Settings,
    storefront_database: Database,
    upstream_payments: PaymentsClient,
    google_oauth: GoogleOAuthClient,
) -> FastAPI:
    return create_storefront_app(
        test_settings,
        database=storefront_database,
        payments_client=upstream_payments,
        google_oauth=google_oauth,
    )


@pytest.fixture()
def storefront_client(storefront_app: FastAPI) -> Iterator[TestClient]:
    with TestClient(storefront_app, base_url="http://test") as client:
        yield client


@pytest.fixture()
def shopper(storefront_database: Database) -> Shopper:
    with storefront_database.session() as session:
        shopper = Shopper(google_id="google-shopper", email="buyer@example.com", name="Buyer")
        session.add(shopper)
        session.commit()
    return shopper


@pytest.fixture()
def shopper_headers(test_settings: Settings, shopper: Shopper) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_shopper_token(test_settings, shopper)}"}


# --- Wallet server --------------------------------------------------------------


@pytest.fixture()
def wallet_database() -> Iterator[Database]:
    database = _memory_database(WALLET_TABLES)
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture()
def passkey_service(test_settings: Settings) -> PasskeyService:
    return PasskeyService(test_settings.rp_id, test_settings.rp_name, test_settings.wallet_origin)


@pytest.fixture()
def wallet_app(
    test_settings: Settings,
    wallet_database: Database,
    passkey_service: PasskeyService,
) -> FastAPI:
    return create_wallet_app(test_settings, database=wallet_database, passkeys=passkey_service)


@pytest.fixture()
def wallet_client(wallet_app: FastAPI) -> Iterator[TestClient]:
    with TestClient(wallet_app, base_url="http://test") as client:
        yield client
