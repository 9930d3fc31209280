# src/constella/main.py
"""Application factories for the payments server, storefront and wallet.

Each factory builds an independent FastAPI application with its own database
handle and collaborators on ``app.state``. Run one with::

    python -m constella.main payments
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from constella.api.v1 import (
    merchant_auth_router,
    payments_router,
    storefront_auth_router,
    storefront_router,
    system_router,
    wallet_users_router,
)
from constella.core.errors import register_exception_handlers
from constella.core.logging import configure_logging
from constella.core.settings import Settings, get_settings
from constella.db.session import Database
from constella.models import PAYMENTS_TABLES, STOREFRONT_TABLES, WALLET_TABLES
from constella.services.google_oauth import GoogleOAuthClient
from constella.services.passkeys import PasskeyService
from constella.services.payments_client import PaymentsClient
from constella.services.pricing import AmountPolicy, FixedAmountPolicy

logger = logging.getLogger(__name__)

SERVICE_PORTS = {"payments": 5001, "storefront": 3001, "wallet": 5003}


Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]
ShutdownHook = Callable[[FastAPI], Awaitable[None]]


def _base_app(title: str, description: str, settings: Settings, lifespan: Lifespan) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(
        title=title,
        description=description,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    register_exception_handlers(app, debug=settings.debug)
    app.include_router(system_router)
    return app


def _database_lifespan(on_shutdown: ShutdownHook | None = None) -> Lifespan:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database: Database = app.state.database
        database.create_tables()
        logger.info("%s started", app.title)
        try:
            yield
        finally:
            if on_shutdown is not None:
                await on_shutdown(app)
            database.dispose()

    return lifespan


def create_payments_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    amount_policy: AmountPolicy | None = None,
) -> FastAPI:
    """Build the merchant-facing payments server."""
    settings = settings or get_settings()
    app = _base_app(
        "Constella Payments API",
        "Payment requests, merchant claims and balances",
        settings,
        _database_lifespan(),
    )
    app.state.database = database or Database(
        settings.payments_database_url, PAYMENTS_TABLES, echo=settings.sql_debug
    )
    app.state.amount_policy = amount_policy or FixedAmountPolicy(settings.claim_fixed_amount)

    app.include_router(merchant_auth_router, prefix="/api")
    app.include_router(payments_router, prefix="/api")
    return app


async def _close_storefront_clients(app: FastAPI) -> None:
    await app.state.payments_client.close()
    await app.state.google_oauth.close()


def create_storefront_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    payments_client: PaymentsClient | None = None,
    google_oauth: GoogleOAuthClient | None = None,
) -> FastAPI:
    """Build the shopper-facing storefront backend."""
    settings = settings or get_settings()
    app = _base_app(
        "Constella Storefront API",
        "Google sign-in and nonce-based purchase completion",
        settings,
        _database_lifespan(_close_storefront_clients),
    )
    app.state.database = database or Database(
        settings.storefront_database_url, STOREFRONT_TABLES, echo=settings.sql_debug
    )
    app.state.payments_client = payments_client or PaymentsClient(
        settings.payments_server_url,
        timeout_seconds=settings.payments_client_timeout_seconds,
    )
    app.state.google_oauth = google_oauth or GoogleOAuthClient(
        settings.google_client_id,
        settings.google_client_secret,
        settings.google_redirect_uri,
    )

    app.include_router(storefront_auth_router)
    app.include_router(storefront_router, prefix="/api")
    return app


def create_wallet_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    passkeys: PasskeyService | None = None,
) -> FastAPI:
    """Build the passkey wallet server."""
    settings = settings or get_settings()
    app = _base_app(
        "Constella Wallet API",
        "Passkey registration and login with issued wallets",
        settings,
        _database_lifespan(),
    )
    app.state.database = database or Database(
        settings.wallet_database_url, WALLET_TABLES, echo=settings.sql_debug
    )
    app.state.passkeys = passkeys or PasskeyService(
        settings.rp_id, settings.rp_name, settings.wallet_origin
    )

    app.include_router(wallet_users_router, prefix="/api")
    return app


FACTORIES: dict[str, Callable[..., FastAPI]] = {
    "payments": create_payments_app,
    "storefront": create_storefront_app,
    "wallet": create_wallet_app,
}


if __name__ == "__main__":
    import uvicorn

    service = sys.argv[1] if len(sys.argv) > 1 else "payments"
    if service not in FACTORIES:
        sys.exit(f"Unknown service {service!r}; choose one of {', '.join(FACTORIES)}")
    settings = get_settings()
    uvicorn.run(
        f"constella.main:{FACTORIES[service].__name__}",
        factory=True,
        host="0.0.0.0",
        port=SERVICE_PORTS[service],
        reload=settings.debug,
    )
