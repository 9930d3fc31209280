# src/constella/models/payment_request.py
"""Payment requests keyed by a caller-supplied nonce."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from constella.db.session import Base
from constella.db.time import utcnow

if TYPE_CHECKING:
    from .merchant import Merchant


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    CLAIMED = "claimed"


class PaymentRequest(Base):
    """A one-time wallet allocated for a nonce, later claimed by a merchant."""

    __tablename__ = "payment_requests"
    __table_args__ = (Index("ix_payment_requests_merchant_status", "merchant_id", "status"),)

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    nonce: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False)
    # Never serialised to callers.
    wallet_private_key: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PaymentStatus.PENDING.value
    )
    merchant_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("merchants.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    merchant: Mapped[Merchant | None] = relationship("Merchant", back_populates="payment_requests")

    @property
    def is_claimed(self) -> bool:
        return self.status == PaymentStatus.CLAIMED.value
