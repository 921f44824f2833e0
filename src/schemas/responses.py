"""External response schemas for grading runs."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RunStatus = Literal["completed", "aborted"]
LogLevel = Literal["info", "warning", "error"]

ABORTED_MESSAGE = "Stopped early due to authorization failure"


class RunLogEntry(BaseModel):
    """One human readable entry plus a developer-only detail payload."""

    level: LogLevel
    message: str
    uid: Optional[str] = None
    outcome: Optional[str] = None
    detail: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class GradingRunCounts(BaseModel):
    total: int = 0
    excluded: int = 0
    not_attempted: int = 0
    cache_hits: int = 0
    dispatched: int = 0
    graded: int = 0
    failed: int = 0
    skipped_after_abort: int = 0

    model_config = ConfigDict(extra="forbid")


class GradingRunReport(BaseModel):
    run_id: str
    status: RunStatus
    message: str
    counts: GradingRunCounts
    batches_sent: int = 0
    backend_calls: int = 0
    consecutive_backend_errors: int = 0
    runtime_ms: int | None = None
    log: List[RunLogEntry] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def aborted(self) -> bool:
        return self.status == "aborted"


__all__ = [
    "ABORTED_MESSAGE",
    "GradingRunCounts",
    "GradingRunReport",
    "LogLevel",
    "RunLogEntry",
    "RunStatus",
]
