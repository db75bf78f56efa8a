"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

STORAGE_FILE = "file"
STORAGE_DOCUMENT = "document"

# Names used by earlier deployments of the dashboard.
_STORAGE_ALIASES = {
    "json": STORAGE_FILE,
    "cosmos": STORAGE_DOCUMENT,
}


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    storage_type: Literal["file", "document"] = Field(
        default=STORAGE_FILE,
        description="Storage backend used to persist user activity",
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory holding one JSON document per tenant",
    )
    cosmos_endpoint: str | None = Field(
        default=None,
        description="Azure Cosmos DB account endpoint used by the document backend",
    )
    cosmos_key: str | None = Field(
        default=None,
        description="Azure Cosmos DB account key used by the document backend",
    )
    cosmos_database: str = Field(
        default="tgit",
        description="Cosmos DB database created on first use",
        min_length=1,
    )
    cosmos_container: str = Field(
        default="users",
        description="Cosmos DB container holding one row per tenant user",
        min_length=1,
    )
    retention_sweep_enabled: bool = Field(
        default=True,
        description="Whether idle users are periodically deleted",
    )
    retention_sweep_interval_seconds: float = Field(
        default=3600.0,
        description="Seconds between two retention sweeps",
        gt=0,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )

    @field_validator("storage_type", mode="before")
    @classmethod
    def _normalize_storage_type(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return _STORAGE_ALIASES.get(normalized, normalized)
        return value

    @field_validator("cosmos_endpoint", "cosmos_key", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def cosmos_configured(self) -> bool:
        """Return ``True`` when both Cosmos DB credentials are present."""

        return bool(self.cosmos_endpoint and self.cosmos_key)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = [
    "STORAGE_DOCUMENT",
    "STORAGE_FILE",
    "Settings",
    "get_settings",
    "reset_settings_cache",
]
