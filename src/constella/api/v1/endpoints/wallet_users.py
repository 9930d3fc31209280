# src/constella/api/v1/endpoints/wallet_users.py
"""Passkey wallet user endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, status

from constella.api.v1.dependencies import (
    AdminDep,
    CurrentWalletUserDep,
    PasskeyServiceDep,
    SessionDep,
    SettingsDep,
)
from constella.core.errors import BadRequestError, NotFoundError
from constella.core.security import WALLET_TOKEN, create_access_token
from constella.core.settings import Settings
from constella.models import WalletUser
from constella.schemas.common import MessageResponse
from constella.schemas.wallet import (
    CredentialRequest,
    UsernameAvailability,
    UsernameRequest,
    WalletProfile,
    WalletSessionResponse,
    WalletUserOut,
)
from constella.services.passkeys import get_wallet_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["wallet"])

MIN_USERNAME_LENGTH = 3


def _session_response(settings: Settings, user: WalletUser) -> WalletSessionResponse:
    token = create_access_token(
        user.id,
        secret=settings.wallet_jwt_secret,
        token_type=WALLET_TOKEN,
        expires_minutes=settings.wallet_token_expire_minutes,
        algorithm=settings.jwt_algorithm,
        extra_claims={"username": user.username},
    )
    return WalletSessionResponse(token=token, user=WalletUserOut.model_validate(user))


@router.post("/register/start", summary="Begin passkey registration")
async def register_start(
    payload: UsernameRequest,
    db: SessionDep,
    passkeys: PasskeyServiceDep,
) -> dict[str, Any]:
    return passkeys.start_registration(db, payload.username)


@router.post(
    "/register/finish",
    summary="Complete passkey registration",
    response_model=WalletSessionResponse,
)
async def register_finish(
    payload: CredentialRequest,
    db: SessionDep,
    settings: SettingsDep,
    passkeys: PasskeyServiceDep,
) -> WalletSessionResponse:
    user = passkeys.finish_registration(db, payload.username, payload.credential)
    return _session_response(settings, user)


@router.post("/login/start", summary="Begin passkey login")
async def login_start(
    payload: UsernameRequest,
    db: SessionDep,
    passkeys: PasskeyServiceDep,
) -> dict[str, Any]:
    return passkeys.start_login(db, payload.username)


@router.post("/login/finish", summary="Complete passkey login", response_model=WalletSessionResponse)
async def login_finish(
    payload: CredentialRequest,
    db: SessionDep,
    settings: SettingsDep,
    passkeys: PasskeyServiceDep,
) -> WalletSessionResponse:
    user = passkeys.finish_login(db, payload.username, payload.credential)
    return _session_response(settings, user)


@router.get("", summary="Current wallet profile", response_model=WalletProfile)
@router.get("/profile", summary="Current wallet profile", response_model=WalletProfile)
async def get_profile(user: CurrentWalletUserDep) -> WalletProfile:
    return WalletProfile.model_validate(user)


@router.get(
    "/check-username/{username}",
    summary="Check username availability",
    response_model=UsernameAvailability,
)
async def check_username(username: str, db: SessionDep) -> UsernameAvailability:
    normalized = username.strip().lower()
    if len(normalized) < MIN_USERNAME_LENGTH:
        raise BadRequestError(
            "Username must be at least 3 characters long",
            extra={"available": False},
        )
    existing = get_wallet_user(db, normalized)
    taken = existing is not None and existing.has_completed_registration
    return UsernameAvailability(
        available=not taken,
        message="Username is already taken" if taken else "Username is available",
    )


@router.delete(
    "/{username}",
    summary="Delete a wallet user (admin)",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[AdminDep],
)
async def delete_user(username: str, db: SessionDep) -> MessageResponse:
    user = get_wallet_user(db, username)
    if user is None:
        raise NotFoundError("User not found")
    db.delete(user)
    db.commit()
    logger.info("Admin deleted wallet user %s", username)
    return MessageResponse(message="User deleted successfully")
