"""
Profile Service - Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again during app startup.

Environment variables keep the names the service has always been deployed
with (DB_HOST, DB_USER, DB_PASSWORD, DB_NAME, SERVICE_PORT, SERVICE_ADDRESS,
TIMEOUT). DATABASE_URL, when present, overrides the DB_* parts entirely.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL, make_url


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development except the
    credential verifier (AUTH_SECRET or AUTH_JWKS_URL), which is reported at
    startup by validate_required_for_production().
    """

    # ── Database ──────────────────────────────────────────────────────────
    db_host: str = Field(default="localhost")
    db_port: Optional[int] = Field(default=None, ge=1, le=65535)
    db_user: str = Field(default="")
    db_password: str = Field(default="")
    db_name: str = Field(default="profiles")

    # Async SQLAlchemy driver, e.g. postgresql+asyncpg or mysql+aiomysql
    db_driver: str = Field(default="postgresql+asyncpg")

    # Full URL override; the test-suite points this at sqlite+aiosqlite
    database_url_override: Optional[str] = Field(default=None, alias="database_url")

    db_pool_size: int = Field(default=20, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── Server ────────────────────────────────────────────────────────────
    service_address: str = Field(default="0.0.0.0")
    service_port: int = Field(default=5000, ge=1, le=65535)

    # Seconds a request may run before the timeout envelope is sent.
    # Unset (or not a number) means no timeout.
    timeout: Optional[float] = Field(default=None)

    api_message: str = Field(default="nft market api")

    log_level: str = Field(default="INFO")

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding window: 100 requests per 15 minutes
    rate_limit_requests: int = Field(default=100, ge=1, le=100000)
    rate_limit_window: int = Field(default=900, ge=1, le=86400)  # seconds

    # ── Authorization ─────────────────────────────────────────────────────
    auth_secret: str = Field(default="")
    auth_jwks_url: Optional[str] = Field(default=None)
    auth_algorithms: str = Field(default="HS256")
    auth_audience: Optional[str] = Field(default=None)
    auth_issuer: Optional[str] = Field(default=None)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")
    cors_allow_headers: str = Field(
        default="Origin, X-Requested-With, Content-Type, Accept, Authorization, UUID"
    )
    cors_allow_methods: str = Field(default="GET, POST, PATCH, PUT, DELETE, OPTIONS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        """A blank or non-numeric TIMEOUT leaves the timeout unset."""
        if v is None or isinstance(v, (int, float)):
            return v
        try:
            value = float(str(v).strip())
        except ValueError:
            return None
        return value if value > 0 else None

    @staticmethod
    def _split(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        return self._split(self.cors_origins)

    @property
    def cors_allow_headers_list(self) -> List[str]:
        return self._split(self.cors_allow_headers)

    @property
    def cors_allow_methods_list(self) -> List[str]:
        return self._split(self.cors_allow_methods)

    @property
    def auth_algorithms_list(self) -> List[str]:
        return self._split(self.auth_algorithms)

    @property
    def database_url(self) -> URL:
        """
        What: The SQLAlchemy URL for the async engine.
        How:  DATABASE_URL wins when set; otherwise the URL is assembled from
              the DB_* parts. URL.create escapes credentials, so passwords
              with '@' or '/' survive.
        """
        if self.database_url_override:
            return make_url(self.database_url_override)
        return URL.create(
            drivername=self.db_driver,
            username=self.db_user or None,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Checks each required field and raises ValueError with guidance.
        """
        errors = []
        if not self.auth_secret and not self.auth_jwks_url:
            errors.append(
                "Neither AUTH_SECRET nor AUTH_JWKS_URL is set. "
                "Every authenticated request will be rejected."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
