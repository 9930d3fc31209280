"""initial schema

Revision ID: 3b1f0c2a9d47
Revises:
Create Date: 2026-10-17 10:12:41.508321

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b1f0c2a9d47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _upgrade_payments() -> None:
    op.create_table(
        "merchants",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "payment_requests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("nonce", sa.String(length=255), nullable=False),
        sa.Column("wallet_address", sa.String(length=42), nullable=False),
        sa.Column("wallet_private_key", sa.Text(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nonce"),
    )
    op.create_index(
        "ix_payment_requests_merchant_status",
        "payment_requests",
        ["merchant_id", "status"],
    )


def _upgrade_storefront() -> None:
    op.create_table(
        "shoppers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("google_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("picture", sa.Text(), nullable=True),
        sa.Column("has_purchased", sa.Boolean(), nullable=False),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("google_id"),
    )
    op.create_table(
        "consumed_nonces",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("nonce", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["shoppers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nonce"),
    )


def _upgrade_wallet() -> None:
    op.create_table(
        "wallet_users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("has_completed_registration", sa.Boolean(), nullable=False),
        sa.Column("current_challenge", sa.Text(), nullable=True),
        sa.Column("wallet_address", sa.String(length=42), nullable=True),
        sa.Column("wallet_private_key", sa.Text(), nullable=True),
        sa.Column("balance", sa.Float(), nullable=False),
        sa.Column("last_request_refresh_balance_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "authenticators",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("credential_id", sa.String(length=1024), nullable=False),
        sa.Column("public_key", sa.Text(), nullable=False),
        sa.Column("counter", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["wallet_users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("credential_id"),
    )


UPGRADES = {
    "payments": _upgrade_payments,
    "storefront": _upgrade_storefront,
    "wallet": _upgrade_wallet,
}

DOWNGRADE_TABLES = {
    "payments": ["payment_requests", "merchants"],
    "storefront": ["consumed_nonces", "shoppers"],
    "wallet": ["authenticators", "wallet_users"],
}


def upgrade(service: str | None = None) -> None:
    """Create the tables for one service, or for all of them."""
    for name, step in UPGRADES.items():
        if service in (None, name):
            step()


def downgrade(service: str | None = None) -> None:
    """Drop the tables created by :func:`upgrade`."""
    for name, tables in DOWNGRADE_TABLES.items():
        if service not in (None, name):
            continue
        if name == "payments":
            op.drop_index("ix_payment_requests_merchant_status", table_name="payment_requests")
        for table in tables:
            op.drop_table(table)
