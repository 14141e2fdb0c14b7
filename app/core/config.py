"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (Cloud Run injects env vars directly)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("a, b,,c ")
        ['a', 'b', 'c']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """HTTP server and collaborator API configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field("0.0.0.0", description="Interface to bind")
    port: int = Field(
        3001,
        description="Port to listen on (Cloud Run sets PORT)",
        validation_alias=AliasChoices("APP_PORT", "PORT"),
    )
    keep_alive_timeout_seconds: int = Field(
        65,
        description="HTTP keep-alive timeout, above the load balancer idle timeout",
        ge=1,
    )
    api_key_required: bool = Field(
        False,
        description="Require X-API-Key on the /emit and /check-room-members endpoints",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for the collaborator endpoints",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class SocketSettings(BaseSettings):
    """Socket.IO transport and join rate limit configuration."""

    path: str = Field(
        "socket.io",
        description="Socket.IO endpoint path (the hosting proxy strips any /ws prefix)",
    )
    production_domain: str = Field(
        "https://conscious-bookclub-87073-9eb71.web.app",
        description="Primary web origin allowed in production",
    )
    allowed_origins: str | None = Field(
        "https://conscious-bookclub-87073-9eb71.firebaseapp.com,https://cbc.jacobdayton.com",
        description="Extra comma-separated CORS origins allowed in production",
    )
    ping_interval_seconds: int = Field(25, description="Engine.IO ping interval", ge=1)
    ping_timeout_seconds: int = Field(20, description="Engine.IO ping timeout", ge=1)
    join_rate_limit_capacity: int = Field(
        10,
        description="Token bucket capacity for join:club per connection",
        ge=1,
    )
    join_rate_limit_refill_seconds: float = Field(
        1.0,
        description="Seconds per refilled token",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="SOCKET_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Connection token verification.

    Tokens are JWTs signed with ``jwt_key`` (shared secret for HS* or a PEM
    public key for RS*/ES*).
    """

    jwt_key: str | None = Field(
        None,
        description="Key used to verify connection tokens",
    )
    jwt_algorithms: str = Field(
        "HS256",
        description="Comma-separated list of accepted signing algorithms",
    )
    audience: str | None = Field(None, description="Expected aud claim")
    issuer: str | None = Field(None, description="Expected iss claim")
    user_id_claim: str = Field(
        "uid",
        description="Claim holding the user id (falls back to sub)",
    )
    leeway_seconds: int = Field(0, description="Clock skew tolerance", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_socket_settings() -> "SocketSettings":
    return SocketSettings()  # type: ignore[call-arg]


def _build_auth_settings() -> "AuthSettings":
    return AuthSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development, all CORS origins allowed
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment, CORS restricted
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    socket: SocketSettings = Field(default_factory=_build_socket_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def cors_allowed_origins(self) -> list[str] | str:
        """Origins accepted by the Socket.IO server.

        Production pins the web app domains; every other environment
        accepts any origin.
        """
        if not self.is_production:
            return "*"
        origins = [self.socket.production_domain]
        origins.extend(
            origin
            for origin in parse_csv(self.socket.allowed_origins)
            if origin not in origins
        )
        return origins


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
