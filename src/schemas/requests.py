"""External request schemas for grading runs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class GradingRunOptions(BaseModel):
    """Per-run overrides. All fields are optional and validated."""

    backend_url: str | None = None
    api_key: str | None = None
    batch_size: int | None = Field(default=None, ge=1)
    max_parallel: int | None = Field(default=None, ge=1)
    request_timeout: float | None = Field(default=None, gt=0)
    max_validation_retries: int | None = Field(default=None, ge=0)
    backend_error_warn_threshold: int | None = Field(default=None, ge=1)
    skip_task_types: list[str] | None = None

    cache_dir: str | None = None
    cache_scope: Literal["assessment", "none"] | None = None

    model_config = ConfigDict(extra="forbid")


__all__ = ["GradingRunOptions"]
