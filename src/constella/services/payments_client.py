"""Client for the payments server used by the storefront backend.

The storefront authenticates as its configured merchant and claims the
shopper's nonce. Both calls go through one :class:`PaymentsClient`; the
merchant token is obtained per purchase and discarded afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from constella.core.errors import UpstreamError

logger = logging.getLogger(__name__)

HTTP_OK = 200


class PaymentsServerError(UpstreamError):
    """Raised when the payments server rejects a call or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.payload = payload or {}


@dataclass(frozen=True)
class ClaimedPayment:
    """Subset of the claimed payment request the storefront needs."""

    nonce: str
    amount: float
    status: str
    merchant_id: str | None


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class PaymentsClient:
    """Typed HTTP wrapper around the payments server's merchant API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def _post(
        self,
        path: str,
        json_data: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.post(path, json=json_data, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Payments server request %s failed: %s", path, exc)
            raise PaymentsServerError("Payment server unavailable") from exc

    async def login(self, username: str, password: str) -> str:
        """Log in as a merchant and return its bearer token."""
        response = await self._post(
            "/api/auth/login",
            {"username": username, "password": password},
        )
        body = _json_or_empty(response)
        token = body.get("token")
        if response.status_code != HTTP_OK or not token:
            logger.error(
                "Payments server login failed (%s): %s",
                response.status_code,
                body.get("error"),
            )
            raise PaymentsServerError(
                "Failed to authenticate with payment server",
                payload=body,
            )
        return str(token)

    async def claim(self, token: str, nonce: str) -> ClaimedPayment:
        """Claim ``nonce`` with a merchant token.

        Upstream rejections keep their status code so that an unknown nonce is
        still a 404 and a nonce held by another merchant is still a 409.
        """
        response = await self._post(
            "/api/payments/claim",
            {"nonce": nonce},
            headers={"Authorization": f"Bearer {token}"},
        )
        body = _json_or_empty(response)
        if response.status_code != HTTP_OK:
            message = str(body.get("error") or "Payment claim failed")
            raise PaymentsServerError(message, response.status_code, payload=body)

        try:
            payment_request = body["paymentRequest"]
            return ClaimedPayment(
                nonce=str(payment_request["nonce"]),
                amount=float(payment_request["amount"]),
                status=str(payment_request["status"]),
                merchant_id=payment_request.get("merchantId"),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise PaymentsServerError("Malformed response from payment server") from err

    async def close(self) -> None:
        await self._client.aclose()
