# src/constella/models/wallet.py
"""Passkey wallet users and their WebAuthn authenticators."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from constella.db.session import Base
from constella.db.time import utcnow


class WalletUser(Base):
    """A wallet holder identified by username and authenticated by passkey.

    A row with ``has_completed_registration`` false is a pending registration
    holding only a challenge.
    """

    __tablename__ = "wallet_users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    has_completed_registration: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    current_challenge: Mapped[str | None] = mapped_column(Text, nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    wallet_private_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    last_request_refresh_balance_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    authenticators: Mapped[list[Authenticator]] = relationship(
        "Authenticator",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Authenticator(Base):
    """A WebAuthn credential bound to exactly one wallet user."""

    __tablename__ = "authenticators"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # base64url-encoded credential ID and COSE public key
    credential_id: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("wallet_users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[WalletUser] = relationship("WalletUser", back_populates="authenticators")
