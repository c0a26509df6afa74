# app/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Absolute path to the project .env (this file lives in <root>/app/config.py)
ENV_FILE = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    # ---- App / Infra ----
    APP_VERSION: str = "0.1.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    CORS_ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # ---- Database ----
    # Not required at import time so tests and scripts can load settings
    # without a database; the pool checks it when it starts.
    DATABASE_URL: Optional[str] = None
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 4
    STATEMENT_TIMEOUT_MS: int = 30000
    DEFAULT_QUERY_TIMEOUT_MS: int = 30000

    # ---- OpenAI ----
    OPENAI_API_KEY: Optional[str] = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    OPENAI_MODEL: str = "gpt-4o-mini"

    # ---- Parsing / analysis ----
    RULE_BASED_PARSERS_ENABLED: bool = False
    PUBLICATION_SUMMARY_LIMIT: int = 10

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()


def require_openai() -> str:
    """
    Runtime check with a clear error message when the key is missing.
    """
    if not settings.OPENAI_API_KEY:
        raise RuntimeError(
            "OPENAI_API_KEY is missing. Check .env "
            f"(tried to load from: {ENV_FILE})."
        )
    return settings.OPENAI_API_KEY


def require_database_url() -> str:
    if not settings.DATABASE_URL:
        raise RuntimeError(
            "DATABASE_URL is missing. Check .env "
            f"(tried to load from: {ENV_FILE})."
        )
    return settings.DATABASE_URL
