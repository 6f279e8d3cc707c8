"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
The settings object is built once at startup and handed to ``create_app``;
keys are never read from module-level mutable state.
"""

import json
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Go Blog"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    DEV_MODE: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database
    DATABASE_URL: str = "sqlite:///./data/blog.db"
    DATA_DIR: str = "data"

    # Keys. When SECRET_KEY is unset a persistent key is loaded from (or
    # generated into) DATA_DIR/.secret_key at startup.
    SECRET_KEY: Optional[str] = None
    SESSION_SECRET_KEY: Optional[str] = None

    # Cookie sessions (web UI)
    SESSION_COOKIE_NAME: str = "blog"
    SESSION_MAX_AGE: int = 30 * 24 * 3600
    SESSION_KDF_SALT: str = "blog-session-cookie-v1"
    SESSION_KDF_ITERATIONS: int = 300_000

    # Bearer tokens (API)
    TOKEN_ISSUER: str = "MyOrganisation"
    TOKEN_LIFETIME_DAYS: int = 30

    # Argon2 work factors
    PASSWORD_HASH_TIME_COST: int = 3
    PASSWORD_HASH_MEMORY_COST: int = 65536

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_FILE: Optional[str] = None

    # Comma-separated or JSON list
    CORS_ORIGINS: str = "http://localhost:8080"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @staticmethod
    def parse_cors_origins(value: str) -> List[str]:
        """Parse CORS origins from a JSON list or a comma-separated string."""
        if not value:
            return []
        value = value.strip()
        if value.startswith("["):
            try:
                parsed = json.loads(value)
                return [str(origin) for origin in parsed]
            except json.JSONDecodeError:
                pass
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @property
    def cors_origins(self) -> List[str]:
        return self.parse_cors_origins(self.CORS_ORIGINS)

    @property
    def session_cookie_secure(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def json_logging(self) -> bool:
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return not self.DEV_MODE


def get_settings() -> Settings:
    """Build settings from the environment."""
    return Settings()
