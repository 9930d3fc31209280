# mypy: ignore-errors
# tests/v1/test_storefront.py
"""Storefront purchase tests running against an in-process payments server."""

from __future__ import annotations

import pytest
from fastapi import status

from constella.core.security import SHOPPER_TOKEN, create_access_token
from constella.models import ConsumedNonce, Shopper
from constella.services import payment_requests
from constella.services.pricing import FixedAmountPolicy
from tests.conftest import CLAIM_AMOUNT


@pytest.fixture()
def create_payment(payments_database):
    def _create(nonce: str):
        with payments_database.session() as session:
            return payment_requests.create_payment_request(session, nonce)

    return _create


def _claim(client, headers, nonce: str = "xyz"):
    return client.post("/api/claim", json={"nonce": nonce}, headers=headers)


def _consumed_count(storefront_database) -> int:
    with storefront_database.session() as session:
        return session.query(ConsumedNonce).count()


def test_claim_completes_purchase(
    storefront_client, shopper_headers, demo_merchant, create_payment, payments_database
) -> None:
    create_payment("xyz")

    response = _claim(storefront_client, shopper_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["message"] == "Payment completed successfully"
    assert data["amount"] == CLAIM_AMOUNT
    assert data["user"]["hasPurchased"] is True
    assert data["user"]["purchasedAt"] is not None

    with payments_database.session() as session:
        claimed = payment_requests.get_payment_request(session, "xyz")
        assert claimed.status == "claimed"
        assert claimed.merchant_id == demo_merchant.id


def test_repeated_nonce_conflicts_and_leaves_user_unchanged(
    storefront_client, shopper_headers, demo_merchant, create_payment, storefront_database
) -> None:
    create_payment("xyz")
    first = _claim(storefront_client, shopper_headers)
    purchased_at = first.json()["user"]["purchasedAt"]

    second = _claim(storefront_client, shopper_headers)

    assert second.status_code == status.HTTP_409_CONFLICT
    assert second.json() == {"error": "Nonce already consumed"}
    assert _consumed_count(storefront_database) == 1
    user = storefront_client.get("/api/user", headers=shopper_headers).json()
    assert user["hasPurchased"] is True
    assert user["purchasedAt"] == purchased_at


def test_unknown_nonce_is_not_found(
    storefront_client, shopper_headers, demo_merchant, storefront_database
) -> None:
    response = _claim(storefront_client, shopper_headers, "never-created")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Payment request not found"}
    assert _consumed_count(storefront_database) == 0


def test_nonce_held_by_another_merchant_conflicts(
    storefront_client,
    shopper_headers,
    demo_merchant,
    other_merchant,
    create_payment,
    payments_database,
    storefront_database,
) -> None:
    create_payment("xyz")
    with payments_database.session() as session:
        payment_requests.claim_payment_request(
            session, "xyz", other_merchant.id, FixedAmountPolicy(5.0)
        )

    response = _claim(storefront_client, shopper_headers)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert _consumed_count(storefront_database) == 0


def test_insufficient_amount(
    storefront_client,
    shopper,
    shopper_headers,
    demo_merchant,
    create_payment,
    test_settings,
    storefront_database,
) -> None:
    test_settings.min_purchase_amount = 1.0
    create_payment("xyz")

    response = _claim(storefront_client, shopper_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "Insufficient payment amount",
        "required": 1.0,
        "received": CLAIM_AMOUNT,
    }
    assert _consumed_count(storefront_database) == 0
    with storefront_database.session() as session:
        assert session.get(Shopper, shopper.id).has_purchased is False


def test_merchant_login_failure_is_bad_gateway(
    storefront_client, shopper_headers, create_payment
) -> None:
    """Without the configured merchant on the payments server the claim cannot proceed."""
    create_payment("xyz")

    response = _claim(storefront_client, shopper_headers)

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"error": "Failed to authenticate with payment server"}


def test_claim_requires_shopper_token(storefront_client) -> None:
    response = storefront_client.post("/api/claim", json={"nonce": "xyz"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_claim_requires_nonce(storefront_client, shopper_headers) -> None:
    response = storefront_client.post("/api/claim", json={}, headers=shopper_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_token_for_missing_shopper(storefront_client, test_settings) -> None:
    token = create_access_token(
        "ghost",
        secret=test_settings.storefront_jwt_secret,
        token_type=SHOPPER_TOKEN,
        expires_minutes=5,
    )
    response = storefront_client.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "User not found"}


def test_get_user(storefront_client, shopper, shopper_headers) -> None:
    response = storefront_client.get("/api/user", headers=shopper_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == shopper.id
    assert data["email"] == "buyer@example.com"
    assert data["hasPurchased"] is False


def test_direct_purchase_and_reset(storefront_client, shopper_headers) -> None:
    purchased = storefront_client.post("/api/purchase", headers=shopper_headers)
    assert purchased.status_code == status.HTTP_200_OK
    assert purchased.json()["message"] == "Purchase recorded successfully"
    assert purchased.json()["user"]["hasPurchased"] is True

    reset = storefront_client.post("/api/purchase/reset", headers=shopper_headers)
    assert reset.json()["message"] == "Purchase state reset successfully"
    assert reset.json()["user"]["hasPurchased"] is False
    assert reset.json()["user"]["purchasedAt"] is None


def test_logout(storefront_client) -> None:
    response = storefront_client.get("/api/logout")
    assert response.json() == {"message": "Logged out successfully"}
