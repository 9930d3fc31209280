# src/constella/api/v1/endpoints/storefront_auth.py
"""Google sign-in for the storefront.

The browser is bounced to Google with a signed, short-lived ``state`` token
and returns to the callback, which upserts the shopper and hands a bearer
token to the frontend through a redirect.
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from constella.api.v1.dependencies import SessionDep, SettingsDep
from constella.core.errors import AppError
from constella.core.security import (
    OAUTH_STATE_TOKEN,
    SHOPPER_TOKEN,
    create_access_token,
    decode_access_token,
)
from constella.core.settings import Settings
from constella.models import Shopper
from constella.services.google_oauth import GoogleOAuthClient, upsert_shopper

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["storefront-auth"])


def get_google_client(request: Request) -> GoogleOAuthClient:
    client: GoogleOAuthClient = request.app.state.google_oauth
    return client


GoogleClientDep = Annotated[GoogleOAuthClient, Depends(get_google_client)]


def issue_shopper_token(settings: Settings, shopper: Shopper) -> str:
    """Create a storefront bearer token for ``shopper``."""
    return create_access_token(
        shopper.id,
        secret=settings.storefront_jwt_secret,
        token_type=SHOPPER_TOKEN,
        expires_minutes=settings.shopper_token_expire_minutes,
        algorithm=settings.jwt_algorithm,
        extra_claims={"email": shopper.email},
    )


def _frontend_redirect(settings: Settings, path: str, **params: str) -> RedirectResponse:
    url = f"{settings.frontend_url.rstrip('/')}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url, status_code=302)


@router.get("/google", summary="Start Google sign-in")
async def google_login(settings: SettingsDep, google: GoogleClientDep) -> RedirectResponse:
    state = create_access_token(
        secrets.token_urlsafe(16),
        secret=settings.storefront_jwt_secret,
        token_type=OAUTH_STATE_TOKEN,
        expires_minutes=settings.oauth_state_ttl_seconds / 60,
        algorithm=settings.jwt_algorithm,
    )
    return RedirectResponse(google.authorization_url(state), status_code=302)


@router.get("/google/callback", summary="Complete Google sign-in")
async def google_callback(
    db: SessionDep,
    settings: SettingsDep,
    google: GoogleClientDep,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
) -> RedirectResponse:
    if error or not code or not state:
        return _frontend_redirect(settings, "/login", error=error or "missing_code")

    try:
        decode_access_token(
            state,
            secret=settings.storefront_jwt_secret,
            expected_type=OAUTH_STATE_TOKEN,
            algorithm=settings.jwt_algorithm,
        )
        access_token = await google.exchange_code(code)
        profile = await google.fetch_profile(access_token)
    except AppError as err:
        logger.warning("Google sign-in failed: %s", err.message)
        return _frontend_redirect(settings, "/login", error="authentication_failed")

    shopper = upsert_shopper(db, profile)
    token = issue_shopper_token(settings, shopper)
    return _frontend_redirect(settings, "/auth-callback", token=token)
