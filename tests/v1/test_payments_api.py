# mypy: ignore-errors
# tests/v1/test_payments_api.py
"""Tests for the payments server's payment request endpoints."""

from __future__ import annotations

from fastapi import status

from constella.core.security import SHOPPER_TOKEN, create_access_token
from constella.models import PaymentRequest
from tests.conftest import CLAIM_AMOUNT


def _create(client, nonce: str):
    return client.post("/api/payments/create", json={"nonce": nonce})


def _claim(client, headers, nonce: str):
    return client.post("/api/payments/claim", json={"nonce": nonce}, headers=headers)


def test_create_payment_request(payments_client) -> None:
    response = _create(payments_client, "abc")

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"] == "Payment request created successfully"
    payment_request = data["paymentRequest"]
    assert payment_request["nonce"] == "abc"
    assert payment_request["status"] == "pending"
    assert payment_request["amount"] == 0
    assert payment_request["walletAddress"].startswith("0x")
    assert "walletPrivateKey" not in payment_request


def test_create_duplicate_nonce(payments_client, payments_database) -> None:
    """A repeated create is a conflict and stores nothing new."""
    assert _create(payments_client, "abc").status_code == status.HTTP_201_CREATED

    response = _create(payments_client, "abc")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"error": "Payment request with this nonce already exists"}
    with payments_database.session() as session:
        assert session.query(PaymentRequest).count() == 1


def test_create_requires_nonce(payments_client) -> None:
    response = payments_client.post("/api/payments/create", json={})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == "Validation Error"
    assert body["details"][0]["field"] == "nonce"


def test_get_payment_request(payments_client) -> None:
    _create(payments_client, "abc")

    response = payments_client.get("/api/payments/abc")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["paymentRequest"]["nonce"] == "abc"


def test_get_unknown_payment_request(payments_client) -> None:
    response = payments_client.get("/api/payments/nope")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Payment request not found"}


def test_claim_requires_token(payments_client) -> None:
    _create(payments_client, "abc")
    response = payments_client.post("/api/payments/claim", json={"nonce": "abc"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Access token required"}


def test_claim_rejects_invalid_token(payments_client) -> None:
    response = _claim(payments_client, {"Authorization": "Bearer garbage"}, "abc")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_claim_unknown_nonce(payments_client, merchant_headers) -> None:
    response = _claim(payments_client, merchant_headers, "missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_claim_scenario_same_then_other_merchant(
    payments_client, merchant, merchant_headers, other_merchant_headers
) -> None:
    """M1 claims, M1 re-claims, M2 is refused and ownership is unchanged."""
    _create(payments_client, "abc")

    first = _claim(payments_client, merchant_headers, "abc")
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["message"] == "Payment request claimed successfully"
    claimed = first.json()["paymentRequest"]
    assert claimed["status"] == "claimed"
    assert claimed["merchantId"] == merchant.id
    assert claimed["amount"] == CLAIM_AMOUNT

    again = _claim(payments_client, merchant_headers, "abc")
    assert again.status_code == status.HTTP_200_OK
    assert again.json()["message"] == "Payment request amount updated successfully"
    assert again.json()["paymentRequest"]["merchantId"] == merchant.id

    stolen = _claim(payments_client, other_merchant_headers, "abc")
    assert stolen.status_code == status.HTTP_409_CONFLICT
    assert stolen.json() == {"error": "Payment request already claimed by another merchant"}

    current = payments_client.get("/api/payments/abc").json()["paymentRequest"]
    assert current["status"] == "claimed"


def test_claim_with_shopper_token_is_forbidden(payments_client, test_settings) -> None:
    token = create_access_token(
        "someone",
        secret=test_settings.payments_jwt_secret,
        token_type=SHOPPER_TOKEN,
        expires_minutes=5,
    )
    response = _claim(payments_client, {"Authorization": f"Bearer {token}"}, "abc")
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_balance(payments_client, merchant, merchant_headers, other_merchant_headers) -> None:
    for nonce in ("a", "b"):
        _create(payments_client, nonce)
        _claim(payments_client, merchant_headers, nonce)
    _create(payments_client, "c")
    _claim(payments_client, other_merchant_headers, "c")
    _create(payments_client, "pending")

    response = payments_client.get("/api/payments/balance", headers=merchant_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "merchantId": merchant.id,
        "totalBalance": 2 * CLAIM_AMOUNT,
        "claimedRequestsCount": 2,
    }


def test_balance_for_new_merchant(payments_client, merchant_headers) -> None:
    response = payments_client.get("/api/payments/balance", headers=merchant_headers)
    assert response.json()["totalBalance"] == 0
    assert response.json()["claimedRequestsCount"] == 0


def test_claimed_list_paginates(payments_client, merchant_headers) -> None:
    for index in range(3):
        _create(payments_client, f"n{index}")
        _claim(payments_client, merchant_headers, f"n{index}")

    response = payments_client.get(
        "/api/payments/claimed", params={"page": 1, "limit": 2}, headers=merchant_headers
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data["claimedRequests"]) == 2
    assert data["pagination"] == {
        "page": 1,
        "limit": 2,
        "totalCount": 3,
        "totalPages": 2,
        "hasNext": True,
        "hasPrev": False,
    }


def test_claimed_list_rejects_bad_limit(payments_client, merchant_headers) -> None:
    response = payments_client.get(
        "/api/payments/claimed", params={"limit": 500}, headers=merchant_headers
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
