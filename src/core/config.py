"""Application configuration and .env loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized runtime configuration."""

    backend_url: str = Field(
        default="http://localhost:8000", validation_alias="ASSESSOR_BACKEND_URL"
    )
    api_key: str | None = Field(default=None, validation_alias="ASSESSOR_API_KEY")
    batch_size: int = Field(default=20, ge=1, validation_alias="ASSESSOR_BATCH_SIZE")
    max_parallel: int = Field(default=20, ge=1, validation_alias="ASSESSOR_MAX_PARALLEL")
    request_timeout: float = Field(
        default=60.0, gt=0, validation_alias="ASSESSOR_REQUEST_TIMEOUT"
    )
    max_validation_retries: int = Field(
        default=1, ge=0, validation_alias="ASSESSOR_MAX_VALIDATION_RETRIES"
    )
    backend_error_warn_threshold: int = Field(
        default=2, ge=1, validation_alias="ASSESSOR_BACKEND_ERROR_WARN_THRESHOLD"
    )
    skip_task_types: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["SPREADSHEET"],
        validation_alias="ASSESSOR_SKIP_TASK_TYPES",
    )

    cache_dir: str = Field(default="data/assessor", validation_alias="CACHE_DIR")
    cache_scope: Literal["assessment", "none"] = Field(
        default="assessment", validation_alias="CACHE_SCOPE"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("skip_task_types", mode="before")
    @classmethod
    def _split_task_types(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(item).strip().upper() for item in value if str(item).strip()]
        return value

    @field_validator("cache_scope", mode="before")
    @classmethod
    def _normalize_cache_scope(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("backend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once from .env/environment."""
    return Settings()


__all__ = ["Settings", "get_settings"]
