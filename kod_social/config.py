"""
Runtime configuration helpers for the social engine.

Loads settings from the process environment and the ``.env`` file located
in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./kod_social.db"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    app_name: str = Field(default="Keep or Discard Social", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Document store
    store_backend: Literal["sql", "memory"] | None = Field(default=None, alias="STORE_BACKEND")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # Identifiers and display
    channel_separator: str = Field(default="_", min_length=1, alias="CHANNEL_SEPARATOR")
    placeholder_name: str = Field(default="Unknown User", alias="PLACEHOLDER_NAME")

    # Object storage
    storage_backend: Literal["memory", "spaces"] = Field(default="memory", alias="STORAGE_BACKEND")
    storage_bucket: str | None = Field(default=None, alias="STORAGE_BUCKET")
    storage_region: str | None = Field(default=None, alias="STORAGE_REGION")
    storage_endpoint: str | None = Field(default=None, alias="STORAGE_ENDPOINT")
    storage_key: str | None = Field(default=None, alias="STORAGE_KEY")
    storage_secret: str | None = Field(default=None, alias="STORAGE_SECRET")
    public_base_url: str = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")

    # Text generation
    llm_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta", alias="LLM_BASE_URL")
    llm_model: str = Field(default="gemini-2.0-flash", alias="LLM_MODEL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_timeout: float = Field(default=60.0, alias="LLM_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def resolved_store_backend(self) -> str:
        """Explicit ``STORE_BACKEND``, else SQL only when a ``DATABASE_URL`` is set."""

        if self.store_backend is not None:
            return self.store_backend
        return "sql" if self.database_url else "memory"

    def sql_url(self) -> str:
        return self.database_url or DEFAULT_DATABASE_URL

    def cors_origin_list(self) -> list[str]:
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        return origins or ["*"]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
