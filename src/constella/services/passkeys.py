"""WebAuthn (passkey) registration and login for wallet users.

Registration moves a username through three states: no row, a pending row
holding a challenge, and a completed row owning a wallet and an
authenticator. A failed verification deletes the pending row so the username
can be registered again.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import (
    InvalidAuthenticationResponse,
    InvalidCBORData,
    InvalidJSONStructure,
    InvalidRegistrationResponse,
)
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorSelectionCriteria,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from constella.core.errors import AuthenticationError, BadRequestError, ConflictError
from constella.models import Authenticator, WalletUser
from constella.services.wallets import generate_wallet

logger = logging.getLogger(__name__)

REGISTRATION_ERRORS = (InvalidRegistrationResponse, InvalidJSONStructure, InvalidCBORData, ValueError)
AUTHENTICATION_ERRORS = (
    InvalidAuthenticationResponse,
    InvalidJSONStructure,
    InvalidCBORData,
    ValueError,
)


def get_wallet_user(db: Session, username: str) -> WalletUser | None:
    return db.scalar(
        select(WalletUser)
        .where(WalletUser.username == username)
        .options(selectinload(WalletUser.authenticators))
    )


class PasskeyService:
    """Relying-party side of the WebAuthn ceremonies."""

    def __init__(self, rp_id: str, rp_name: str, origin: str) -> None:
        self.rp_id = rp_id
        self.rp_name = rp_name
        self.origin = origin

    # --- Registration -----------------------------------------------------------
    def start_registration(self, db: Session, username: str) -> dict[str, Any]:
        """Create or reuse a pending row and return creation options."""
        user = get_wallet_user(db, username)
        if user is not None and user.has_completed_registration:
            raise ConflictError("User already exists")
        if user is None:
            user = WalletUser(username=username, has_completed_registration=False)
            db.add(user)
            db.flush()

        options = generate_registration_options(
            rp_id=self.rp_id,
            rp_name=self.rp_name,
            user_id=user.id.encode(),
            user_name=user.username,
            attestation=AttestationConveyancePreference.NONE,
            authenticator_selection=AuthenticatorSelectionCriteria(
                resident_key=ResidentKeyRequirement.REQUIRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
        )
        user.current_challenge = bytes_to_base64url(options.challenge)
        db.commit()
        options_json: dict[str, Any] = json.loads(options_to_json(options))
        return options_json

    def _discard_pending(self, db: Session, username: str) -> None:
        db.rollback()
        user = get_wallet_user(db, username)
        if user is not None and not user.has_completed_registration:
            db.delete(user)
            db.commit()
            logger.info("Discarded pending registration for %s", username)

    def finish_registration(
        self,
        db: Session,
        username: str,
        credential: dict[str, Any],
    ) -> WalletUser:
        """Verify the attestation and turn the pending row into a wallet."""
        user = get_wallet_user(db, username)
        if user is None or not user.current_challenge:
            raise BadRequestError("User not found")
        if user.has_completed_registration:
            raise ConflictError("User already exists")

        try:
            verification = verify_registration_response(
                credential=credential,
                expected_challenge=base64url_to_bytes(user.current_challenge),
                expected_origin=self.origin,
                expected_rp_id=self.rp_id,
            )
        except REGISTRATION_ERRORS as err:
            logger.info("Registration verification failed for %s: %s", username, err)
            self._discard_pending(db, username)
            raise BadRequestError("Registration verification failed") from err

        try:
            wallet = generate_wallet()
            user.authenticators.append(
                Authenticator(
                    credential_id=bytes_to_base64url(verification.credential_id),
                    public_key=bytes_to_base64url(verification.credential_public_key),
                    counter=verification.sign_count,
                )
            )
            user.has_completed_registration = True
            user.current_challenge = None
            user.wallet_address = wallet.address
            user.wallet_private_key = wallet.private_key
            db.commit()
        except Exception:
            self._discard_pending(db, username)
            raise

        db.refresh(user)
        logger.info("Registered wallet %s for %s", user.wallet_address, username)
        return user

    # --- Authentication ---------------------------------------------------------
    def start_login(self, db: Session, username: str) -> dict[str, Any]:
        """Issue a challenge restricted to the user's stored credentials."""
        user = get_wallet_user(db, username)
        if user is None or not user.has_completed_registration:
            raise AuthenticationError("User not found")

        options = generate_authentication_options(
            rp_id=self.rp_id,
            allow_credentials=[
                PublicKeyCredentialDescriptor(id=base64url_to_bytes(auth.credential_id))
                for auth in user.authenticators
            ],
            user_verification=UserVerificationRequirement.PREFERRED,
        )
        user.current_challenge = bytes_to_base64url(options.challenge)
        db.commit()
        options_json: dict[str, Any] = json.loads(options_to_json(options))
        return options_json

    def finish_login(
        self,
        db: Session,
        username: str,
        credential: dict[str, Any],
    ) -> WalletUser:
        """Verify the assertion and advance the authenticator's counter."""
        user = get_wallet_user(db, username)
        if user is None or not user.has_completed_registration:
            raise AuthenticationError("User not found")
        if not user.current_challenge:
            raise AuthenticationError("No login in progress")

        credential_id = credential.get("id")
        authenticator = next(
            (auth for auth in user.authenticators if auth.credential_id == credential_id),
            None,
        )
        if authenticator is None:
            raise AuthenticationError("Authenticator not found")

        expected_challenge = base64url_to_bytes(user.current_challenge)
        user.current_challenge = None
        try:
            verification = verify_authentication_response(
                credential=credential,
                expected_challenge=expected_challenge,
                expected_rp_id=self.rp_id,
                expected_origin=self.origin,
                credential_public_key=base64url_to_bytes(authenticator.public_key),
                credential_current_sign_count=authenticator.counter,
            )
        except AUTHENTICATION_ERRORS as err:
            db.commit()
            logger.info("Authentication failed for %s: %s", username, err)
            raise AuthenticationError("Authentication verification failed") from err

        authenticator.counter = verification.new_sign_count
        db.commit()
        db.refresh(user)
        return user
