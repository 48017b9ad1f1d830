"""
Application Configuration - Pydantic Settings for type-safe config.

FAIL FAST - Critical config (database URL, token signing secret) is validated
at startup. There is no compiled-in fallback secret.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_JWT_SECRET_LENGTH = 32


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration - NO DEFAULT for production safety
    database_url: str = ""
    database_pool_size: int = 10
    database_max_overflow: int = 5
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    run_migrations_on_startup: bool = False

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_title: str = "MDRG API"
    api_version: str = "1.0.0"
    api_description: str = "Debt recovery case management backend"
    cors_origins: str = "*"  # Comma-separated list
    static_dir: str = "public"

    # Token signing - REQUIRED (generate with: openssl rand -hex 32)
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24

    # Password hashing (argon2id cost parameters)
    password_time_cost: int = 3
    password_memory_cost: int = 65536  # KiB
    password_parallelism: int = 4

    # Administrative capability for admin-shaped routes (closed when unset)
    admin_api_key: str | None = None

    # Include internal error messages in 500 responses (development only)
    expose_error_details: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "mdrg-api"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        The app MUST NOT start without a database or a signing secret.
        """
        errors: list[str] = []

        if not self.database_url:
            errors.append("DATABASE_URL is required but empty or missing")
        elif not self.database_url.startswith(("postgresql", "postgres", "sqlite")):
            errors.append(
                f"DATABASE_URL must be a PostgreSQL or SQLite URL, got: {self.database_url[:20]}..."
            )

        if not self.jwt_secret:
            errors.append("JWT_SECRET is required but empty or missing")
        elif len(self.jwt_secret) < MIN_JWT_SECRET_LENGTH:
            errors.append(f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters")

        if self.jwt_expire_hours <= 0:
            errors.append("JWT_EXPIRE_HOURS must be positive")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - APPLICATION CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self

    @property
    def is_sqlite(self) -> bool:
        """True when the store is a SQLite database."""
        return self.database_url.startswith("sqlite")

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
