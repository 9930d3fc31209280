# src/constella/scripts/setup_demo_merchant.py
"""
Create the merchant account the storefront logs in as.

Run this after starting the payments server. An existing account is not an
error; the script proceeds to verify that the credentials log in.
"""

from __future__ import annotations

import argparse
import sys

import httpx

from constella.core.settings import get_settings

HTTP_CREATED = 201
HTTP_CONFLICT = 409
HTTP_OK = 200


def setup_demo_merchant(
    client: httpx.Client,
    username: str,
    password: str,
    name: str = "Demo Merchant",
) -> str:
    """Sign up (if needed) and log in; return the merchant token.

    Raises:
        RuntimeError: If signup or login is rejected.
    """
    signup = client.post(
        "/api/auth/signup",
        json={"username": username, "password": password, "name": name},
    )
    if signup.status_code == HTTP_CREATED:
        print(f"Created merchant {signup.json()['merchant']['id']} ({username})")
    elif signup.status_code == HTTP_CONFLICT:
        print(f"Merchant {username} already exists, proceeding with login")
    else:
        raise RuntimeError(f"Failed to create merchant: {signup.json().get('error')}")

    login = client.post("/api/auth/login", json={"username": username, "password": password})
    if login.status_code != HTTP_OK:
        raise RuntimeError(f"Failed to login: {login.json().get('error')}")
    token: str = login.json()["token"]
    print(f"Login OK, token {token[:20]}...")
    return token


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default=settings.payments_server_url)
    parser.add_argument("--username", default=settings.merchant_username)
    parser.add_argument("--password", default=settings.merchant_password)
    args = parser.parse_args(argv)

    if not args.password:
        print("A merchant password is required (MERCHANT_PASSWORD or --password)", file=sys.stderr)
        return 2

    with httpx.Client(base_url=args.url, timeout=10.0) as client:
        try:
            setup_demo_merchant(client, args.username, args.password)
        except (httpx.HTTPError, RuntimeError) as exc:
            print(f"Setup failed: {exc}", file=sys.stderr)
            return 1
    print("Set MERCHANT_USERNAME/MERCHANT_PASSWORD for the storefront to these values.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
