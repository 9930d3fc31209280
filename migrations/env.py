"""Alembic configuration and migration helpers.

One revision history covers every service; pass ``-x service=payments``
(or ``storefront``/``wallet``) to migrate only that service's tables against
its configured database.
"""
from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# Ensure the project root and src/ are importable regardless of invocation path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
for path in (PROJECT_ROOT, SRC_ROOT):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from constella.core.settings import get_settings  # noqa: E402
from constella.db.session import Base  # noqa: E402
from constella.models import PAYMENTS_TABLES, STOREFRONT_TABLES, WALLET_TABLES  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

SERVICE_TABLES = {
    "payments": PAYMENTS_TABLES,
    "storefront": STOREFRONT_TABLES,
    "wallet": WALLET_TABLES,
}

service = context.get_x_argument(as_dictionary=True).get("service")
if service is not None and service not in SERVICE_TABLES:
    raise SystemExit(f"Unknown service {service!r}; choose one of {', '.join(SERVICE_TABLES)}")

alembic_url = os.getenv("ALEMBIC_URL")
if alembic_url:
    config.set_main_option("sqlalchemy.url", alembic_url)
elif not config.get_main_option("sqlalchemy.url"):
    settings = get_settings()
    urls = {
        "payments": settings.payments_database_url,
        "storefront": settings.storefront_database_url,
        "wallet": settings.wallet_database_url,
    }
    config.set_main_option("sqlalchemy.url", urls[service or "payments"])

target_metadata = Base.metadata
selected_tables = (
    {table.name for table in SERVICE_TABLES[service]} if service else None
)


def include_object(obj, name, type_, reflected, compare_to):  # type: ignore[no-untyped-def]
    """Skip Alembic's bookkeeping table and tables owned by other services."""
    if type_ == "table":
        if name == "alembic_version":
            return False
        if selected_tables is not None:
            return name in selected_tables
    return True


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
    )

    with context.begin_transaction():
        context.run_migrations(service=service)


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
        )

        with context.begin_transaction():
            context.run_migrations(service=service)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
