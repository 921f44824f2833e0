"""Per-run state passed explicitly through the grading pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from schemas.responses import ABORTED_MESSAGE, LogLevel, RunLogEntry

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class RunLog:
    """User-facing run log; every entry is mirrored to the module logger."""

    entries: list[RunLogEntry] = field(default_factory=list)

    def add(
        self,
        level: LogLevel,
        message: str,
        *,
        uid: str | None = None,
        outcome: str | None = None,
        detail: dict[str, Any] | None = None,
    ) -> RunLogEntry:
        entry = RunLogEntry(
            level=level,
            message=message,
            uid=uid,
            outcome=outcome,
            detail=detail or {},
        )
        self.entries.append(entry)
        logger.log(_LEVELS[level], "%s", message)
        if entry.detail:
            logger.debug("detail for %s: %s", uid or "run", entry.detail)
        return entry

    def info(self, message: str, **kwargs: Any) -> RunLogEntry:
        return self.add("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> RunLogEntry:
        return self.add("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> RunLogEntry:
        return self.add("error", message, **kwargs)

    def errors(self) -> list[RunLogEntry]:
        return [entry for entry in self.entries if entry.level == "error"]


@dataclass
class RunContext:
    """State for one grading run. Created per run, never persisted."""

    max_validation_retries: int = 1
    backend_error_warn_threshold: int = 2
    run_id: str = field(default_factory=lambda: f"run_{uuid4().hex}")
    retry_counts: dict[str, int] = field(default_factory=dict)
    consecutive_backend_errors: int = 0
    aborted: bool = False
    abort_reason: str | None = None
    backend_calls: int = 0
    batches_sent: int = 0
    log: RunLog = field(default_factory=RunLog)

    def retries_used(self, uid: str) -> int:
        return self.retry_counts.get(uid, 0)

    def can_retry(self, uid: str) -> bool:
        return not self.aborted and self.retries_used(uid) < self.max_validation_retries

    def consume_retry(self, uid: str) -> int:
        self.retry_counts[uid] = self.retries_used(uid) + 1
        return self.retry_counts[uid]

    def attempts(self, uid: str) -> int:
        return 1 + self.retries_used(uid)

    def abort(self, reason: str, *, uid: str | None = None, detail: dict[str, Any] | None = None) -> None:
        if self.aborted:
            return
        self.aborted = True
        self.abort_reason = reason
        self.log.error(
            f"{ABORTED_MESSAGE}: {reason}",
            uid=uid,
            outcome="unauthorized",
            detail=detail,
        )

    def record_backend_error(self, status_code: int) -> None:
        self.consecutive_backend_errors += 1
        if self.consecutive_backend_errors == self.backend_error_warn_threshold:
            self.log.warning(
                f"The grading backend returned {self.consecutive_backend_errors} internal "
                "errors in a row; it may be unhealthy.",
                outcome="unknown_error",
                detail={"last_status_code": status_code},
            )

    def record_backend_ok(self) -> None:
        self.consecutive_backend_errors = 0


__all__ = ["RunContext", "RunLog"]
