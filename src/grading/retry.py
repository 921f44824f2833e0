"""Per-unit recovery after classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from grading.classifier import (
    BadRequest,
    Outcome,
    SchemaInvalid,
    Success,
    TransportError,
    Unauthorized,
    UnknownError,
    classify,
)
from grading.context import RunContext
from grading.dispatcher import BatchDispatcher
from grading.planner import DispatchRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    attempts: int
    skipped_after_abort: bool = False

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Success)


class RetryCoordinator:
    """Re-issues retryable failures one request at a time, up to the retry cap."""

    def __init__(self, dispatcher: BatchDispatcher, context: RunContext) -> None:
        self._dispatcher = dispatcher
        self._context = context

    async def resolve(self, request: DispatchRequest, outcome: Outcome) -> Resolution:
        context = self._context
        while True:
            self._track_backend_health(outcome)
            if isinstance(outcome, Success):
                return Resolution(outcome, context.attempts(request.uid))
            if isinstance(outcome, Unauthorized):
                context.abort(
                    "the grading backend rejected the API key",
                    uid=request.uid,
                    detail={"status_code": outcome.status_code, "body": outcome.body},
                )
                return Resolution(outcome, context.attempts(request.uid))
            if isinstance(outcome, (SchemaInvalid, TransportError)):
                if context.can_retry(request.uid):
                    used = context.consume_retry(request.uid)
                    logger.info(
                        "retrying %s after %s (retry %d/%d)",
                        request.uid,
                        outcome.kind.value,
                        used,
                        context.max_validation_retries,
                    )
                    raw = await self._dispatcher.send_one(request, context)
                    outcome = classify(request, raw)
                    continue
                return self._terminal(request, outcome)
            return self._terminal(request, outcome)

    def _terminal(self, request: DispatchRequest, outcome: Outcome) -> Resolution:
        context = self._context
        attempts = context.attempts(request.uid)
        detail: dict[str, object] = {"attempts": attempts, "task_type": request.task_type}
        if isinstance(outcome, (BadRequest, SchemaInvalid, UnknownError)):
            detail["status_code"] = outcome.status_code
            detail["body"] = outcome.body
        if isinstance(outcome, SchemaInvalid):
            detail["error"] = outcome.error

        retryable = isinstance(outcome, (SchemaInvalid, TransportError))
        if retryable and context.aborted and context.retries_used(request.uid) < context.max_validation_retries:
            context.log.warning(
                f"Unit {request.uid} was not retried because the run stopped early.",
                uid=request.uid,
                outcome=outcome.kind.value,
                detail=detail,
            )
            return Resolution(outcome, attempts, skipped_after_abort=True)

        context.log.error(
            f"Unit {request.uid} could not be graded: {_describe(outcome)}.",
            uid=request.uid,
            outcome=outcome.kind.value,
            detail=detail,
        )
        return Resolution(outcome, attempts)

    def _track_backend_health(self, outcome: Outcome) -> None:
        if isinstance(outcome, TransportError):
            return
        status = getattr(outcome, "status_code", None)
        if isinstance(outcome, UnknownError) and status is not None and status >= 500:
            self._context.record_backend_error(status)
        else:
            self._context.record_backend_ok()


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, TransportError):
        return "the grading backend could not be reached"
    if isinstance(outcome, BadRequest):
        return "the grading backend rejected the request as malformed"
    if isinstance(outcome, SchemaInvalid):
        return "the grading backend returned an invalid assessment"
    if isinstance(outcome, UnknownError):
        if outcome.status_code == 413:
            return "the request payload was too large for the grading backend"
        return f"the grading backend returned HTTP {outcome.status_code}"
    return outcome.kind.value


__all__ = ["Resolution", "RetryCoordinator"]
