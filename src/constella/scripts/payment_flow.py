# src/constella/scripts/payment_flow.py
"""
Smoke-test the merchant side of the payment flow against a running server.

1. Log in as the configured merchant
2. Create a payment request for a random nonce
3. Claim it, then claim it again (amount refresh)
4. Print the merchant balance
"""

from __future__ import annotations

import argparse
import secrets
import sys
from typing import Any

import httpx

from constella.core.settings import get_settings

HTTP_OK = 200
HTTP_CREATED = 201


def _expect(response: httpx.Response, status_code: int, step: str) -> dict[str, Any]:
    body: dict[str, Any] = response.json()
    if response.status_code != status_code:
        raise RuntimeError(f"{step} failed ({response.status_code}): {body.get('error')}")
    return body


def run_flow(client: httpx.Client, username: str, password: str) -> dict[str, Any]:
    """Drive create, claim, re-claim and balance; return the balance body."""
    login = _expect(
        client.post("/api/auth/login", json={"username": username, "password": password}),
        HTTP_OK,
        "Merchant login",
    )
    headers = {"Authorization": f"Bearer {login['token']}"}

    nonce = secrets.token_hex(12)
    created = _expect(
        client.post("/api/payments/create", json={"nonce": nonce}),
        HTTP_CREATED,
        "Create payment request",
    )
    print(f"Created request {nonce} -> {created['paymentRequest']['walletAddress']}")

    for attempt in ("Claim", "Re-claim"):
        claimed = _expect(
            client.post("/api/payments/claim", json={"nonce": nonce}, headers=headers),
            HTTP_OK,
            attempt,
        )
        print(f"{attempt}: {claimed['message']} (amount={claimed['paymentRequest']['amount']})")

    balance = _expect(client.get("/api/payments/balance", headers=headers), HTTP_OK, "Balance")
    print(f"Balance {balance['totalBalance']} over {balance['claimedRequestsCount']} requests")
    return balance


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Exercise the payments server end to end")
    parser.add_argument("--url", default=settings.payments_server_url)
    parser.add_argument("--username", default=settings.merchant_username)
    parser.add_argument("--password", default=settings.merchant_password)
    args = parser.parse_args(argv)

    with httpx.Client(base_url=args.url, timeout=10.0) as client:
        try:
            run_flow(client, args.username, args.password)
        except (httpx.HTTPError, RuntimeError) as exc:
            print(f"Payment flow failed: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
