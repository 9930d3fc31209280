"""Application settings and configuration.

This module defines all configuration options for the Constella services.
Settings are loaded from environment variables with sensible defaults. The
payments server, the storefront backend and the wallet server share one
settings class; each service only reads its own group of fields.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Constella", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings, one secret per token space
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    payments_jwt_secret: str = Field(alias="PAYMENTS_JWT_SECRET")
    merchant_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="MERCHANT_TOKEN_EXPIRE_MINUTES",
    )
    storefront_jwt_secret: str = Field(alias="STOREFRONT_JWT_SECRET")
    shopper_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="SHOPPER_TOKEN_EXPIRE_MINUTES",
    )
    wallet_jwt_secret: str = Field(alias="WALLET_JWT_SECRET")
    wallet_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="WALLET_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    payments_database_url: str = Field(
        default="sqlite:///./payments.db",
        alias="PAYMENTS_DATABASE_URL",
    )
    storefront_database_url: str = Field(
        default="sqlite:///./storefront.db",
        alias="STOREFRONT_DATABASE_URL",
    )
    wallet_database_url: str = Field(
        default="sqlite:///./wallet.db",
        alias="WALLET_DATABASE_URL",
    )

    # Payments server
    claim_fixed_amount: float = Field(default=0.0, alias="CLAIM_FIXED_AMOUNT")

    # Storefront backend and its merchant identity on the payments server
    payments_server_url: str = Field(
        default="http://localhost:5001",
        alias="PAYMENTS_SERVER_URL",
    )
    payments_client_timeout_seconds: float = Field(
        default=10.0,
        alias="PAYMENTS_CLIENT_TIMEOUT_SECONDS",
    )
    merchant_username: str = Field(default="demo-merchant", alias="MERCHANT_USERNAME")
    merchant_password: str = Field(default="", alias="MERCHANT_PASSWORD")
    min_purchase_amount: float = Field(default=0.0, alias="MIN_PURCHASE_AMOUNT")
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    backend_url: str = Field(default="http://localhost:3001", alias="BACKEND_URL")
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")
    google_client_secret: str = Field(default="", alias="GOOGLE_CLIENT_SECRET")
    oauth_state_ttl_seconds: int = Field(default=600, alias="OAUTH_STATE_TTL_SECONDS")

    # Passkey wallet
    rp_id: str = Field(default="localhost", alias="RP_ID")
    rp_name: str = Field(default="Constella Wallet", alias="RP_NAME")
    wallet_origin: str = Field(default="http://localhost:5004", alias="WALLET_ORIGIN")
    wallet_admin_key: str | None = Field(default=None, alias="WALLET_ADMIN_KEY")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def google_redirect_uri(self) -> str:
        """Return the OAuth callback URL registered with Google."""
        return f"{self.backend_url.rstrip('/')}/auth/google/callback"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()  # type: ignore[call-arg]
