"""Run orchestration: plan, dispatch in batches, resolve, write."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Sequence

from grading.classifier import Unauthorized, classify
from grading.context import RunContext
from grading.dispatcher import AssessorTransport, BatchDispatcher, DEFAULT_BATCH_SIZE
from grading.planner import plan_units
from grading.retry import RetryCoordinator
from grading.writer import ResultWriter
from persistence.contracts import AssessmentCache, SubmissionSink
from schemas.internal.units import GradingUnit
from schemas.responses import ABORTED_MESSAGE, GradingRunCounts, GradingRunReport

logger = logging.getLogger(__name__)


class GradingPipeline:
    """Grades one run of units against an injected client, cache and sink."""

    def __init__(
        self,
        client: AssessorTransport,
        cache: AssessmentCache,
        sink: SubmissionSink,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_parallel: int = DEFAULT_BATCH_SIZE,
        max_validation_retries: int = 1,
        backend_error_warn_threshold: int = 2,
    ) -> None:
        self._client = client
        self._cache = cache
        self._sink = sink
        self._batch_size = batch_size
        self._max_parallel = max_parallel
        self._max_validation_retries = max_validation_retries
        self._backend_error_warn_threshold = backend_error_warn_threshold

    def new_context(self) -> RunContext:
        return RunContext(
            max_validation_retries=self._max_validation_retries,
            backend_error_warn_threshold=self._backend_error_warn_threshold,
        )

    async def run(
        self,
        units: Sequence[GradingUnit],
        *,
        context: RunContext | None = None,
        excluded: int = 0,
    ) -> GradingRunReport:
        context = context or self.new_context()
        started = perf_counter()
        counts = GradingRunCounts(total=len(units) + excluded, excluded=excluded)
        writer = ResultWriter(self._cache, self._sink, context.log)
        dispatcher = BatchDispatcher(
            self._client, batch_size=self._batch_size, max_parallel=self._max_parallel
        )
        coordinator = RetryCoordinator(dispatcher, context)
        by_uid = {unit.uid: unit for unit in units}

        plan = plan_units(units, self._cache)
        for unit, result in plan.not_attempted:
            writer.write_assigned(unit, result)
        for unit, result in plan.cached:
            writer.write_assigned(unit, result)
        counts.not_attempted = len(plan.not_attempted)
        counts.cache_hits = len(plan.cached)
        counts.dispatched = len(plan.requests)

        resolved = 0
        async for batch in dispatcher.iter_batches(plan.requests, context):
            outcomes = [(request, classify(request, raw)) for request, raw in batch]
            # Authorization failures are resolved first so no retry follows an abort.
            ordered = sorted(outcomes, key=lambda pair: not isinstance(pair[1], Unauthorized))
            for request, outcome in ordered:
                resolution = await coordinator.resolve(request, outcome)
                resolved += 1
                if resolution.succeeded:
                    writer.write_success(by_uid[request.uid], resolution.outcome.result)
                    counts.graded += 1
                elif resolution.skipped_after_abort:
                    counts.skipped_after_abort += 1
                else:
                    counts.failed += 1

        unsent = len(plan.requests) - resolved
        if unsent:
            counts.skipped_after_abort += unsent
            context.log.warning(
                f"{unsent} unit(s) were not sent because the run stopped early.",
                outcome="skipped",
                detail={"unsent": unsent},
            )

        status = "aborted" if context.aborted else "completed"
        message = ABORTED_MESSAGE if context.aborted else _summary(counts)
        report = GradingRunReport(
            run_id=context.run_id,
            status=status,
            message=message,
            counts=counts,
            batches_sent=context.batches_sent,
            backend_calls=context.backend_calls,
            consecutive_backend_errors=context.consecutive_backend_errors,
            runtime_ms=int((perf_counter() - started) * 1000),
            log=list(context.log.entries),
        )
        logger.info("run %s %s: %s", report.run_id, report.status, report.message)
        return report


def _summary(counts: GradingRunCounts) -> str:
    return (
        f"Graded {counts.graded} of {counts.dispatched} dispatched unit(s); "
        f"{counts.cache_hits} from cache, {counts.not_attempted} not attempted, "
        f"{counts.failed} failed."
    )


__all__ = ["GradingPipeline"]
