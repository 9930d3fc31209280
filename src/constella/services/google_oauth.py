"""Google OAuth 2.0 authorization-code login for the storefront."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constella.core.errors import AuthenticationError
from constella.models import Shopper

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = ("openid", "profile", "email")
HTTP_OK = 200


class OAuthError(AuthenticationError):
    """Raised when the Google code exchange or profile lookup fails."""


@dataclass(frozen=True)
class GoogleProfile:
    id: str
    email: str
    name: str | None
    picture: str | None


class GoogleOAuthClient:
    """Minimal Google OAuth client over httpx."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def authorization_url(self, state: str) -> str:
        """Return the consent screen URL the browser is redirected to."""
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": " ".join(GOOGLE_SCOPES),
                "state": state,
            }
        )
        return f"{GOOGLE_AUTH_URL}?{query}"

    async def _call(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise OAuthError(f"Google request failed: {exc}") from exc
        if response.status_code != HTTP_OK:
            logger.warning("Google %s %s returned %s", method, url, response.status_code)
            raise OAuthError("Google rejected the authorization request")
        try:
            body = response.json()
        except ValueError as exc:
            raise OAuthError("Google returned a malformed response") from exc
        if not isinstance(body, dict):
            raise OAuthError("Google returned a malformed response")
        return body

    async def exchange_code(self, code: str) -> str:
        """Trade an authorization code for an access token."""
        body = await self._call(
            "POST",
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        token = body.get("access_token")
        if not token:
            raise OAuthError("Google returned no access token")
        return str(token)

    async def fetch_profile(self, access_token: str) -> GoogleProfile:
        body = await self._call(
            "GET",
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not body.get("sub") or not body.get("email"):
            raise OAuthError("Google profile is missing an id or email")
        return GoogleProfile(
            id=str(body["sub"]),
            email=str(body["email"]),
            name=body.get("name"),
            picture=body.get("picture"),
        )

    async def close(self) -> None:
        await self._client.aclose()


def upsert_shopper(db: Session, profile: GoogleProfile) -> Shopper:
    """Return the shopper for ``profile``, creating it on first login."""
    shopper = db.scalar(select(Shopper).where(Shopper.google_id == profile.id))
    if shopper is None:
        shopper = Shopper(
            google_id=profile.id,
            email=profile.email,
            name=profile.name,
            picture=profile.picture,
        )
        db.add(shopper)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent first login for the same account inserted it first.
            db.rollback()
            return db.scalars(select(Shopper).where(Shopper.google_id == profile.id)).one()
        db.refresh(shopper)
        logger.info("Created shopper %s for Google account", shopper.id)
    return shopper
