"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env.

    The instance is frozen: key material and limiter policy are fixed for the
    lifetime of the process and handed to each security component when it is
    constructed.
    """

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "International Payments Portal"
    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    # Key material
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    encryption_key: str | None = None
    session_secret: str | None = None

    # Database
    database_url: str = "sqlite+aiosqlite:///./payments.db"

    # Tokens
    customer_token_expire_minutes: int = 60
    employee_token_expire_minutes: int = 60 * 8

    # Login brute-force protection
    login_max_failures: int = 5
    login_min_wait_seconds: float = 1.0
    login_max_wait_seconds: float = 15 * 60
    login_failure_window_seconds: float = 15 * 60
    limiter_sweep_interval_seconds: int = 300

    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("encryption_key")
    @classmethod
    def _check_encryption_key(cls, value: str | None) -> str | None:
        if not value:
            return None
        try:
            raw = bytes.fromhex(value)
        except ValueError as exc:
            raise ValueError("ENCRYPTION_KEY must be hex encoded") from exc
        if len(raw) != 32:
            raise ValueError("ENCRYPTION_KEY must encode exactly 32 bytes")
        return value

    @model_validator(mode="after")
    def _require_production_secrets(self) -> "Settings":
        if self.environment == "production" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in production")
        if self.login_max_failures < 1:
            raise ValueError("LOGIN_MAX_FAILURES must be at least 1")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
