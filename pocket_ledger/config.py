"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This keeps secrets out of source code — the .env file is
gitignored and never committed.

Pydantic Settings resolves each value in this order:
  1. Environment variables (highest priority)
  2. .env file values
  3. Defaults defined here (lowest priority)

Usage:
    from pocket_ledger.config import settings
    print(settings.DATABASE_URL)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Pocket Ledger API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign access tokens
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Pocket Ledger API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Database ---
    # SQLite by default; any async SQLAlchemy URL (e.g. postgresql+asyncpg) works
    DATABASE_URL: str = "sqlite+aiosqlite:///./ledger.db"

    # --- Authentication ---
    # REQUIRED: No default — forces the operator to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    # One JSON object per line; set to false for human-readable local output
    LOG_JSON: bool = True


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
