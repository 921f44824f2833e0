"""Grading run service for CLI reuse."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

import httpx

from core.config import get_settings
from grading.client import AssessorClient
from grading.context import RunContext
from grading.pipeline import GradingPipeline
from grading.planner import collect_grading_units
from grading.writer import AssignmentSubmissionSink
from persistence.cache import build_assessment_cache
from persistence.contracts import AssessmentCache
from schemas.internal.assignments import Assignment
from schemas.requests import GradingRunOptions
from schemas.responses import GradingRunReport


def run_grading(
    assignment: Assignment,
    options: GradingRunOptions | Mapping[str, Any] | None = None,
    *,
    cache: AssessmentCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GradingRunReport:
    """Grade every submission item of an assignment in place."""
    options_obj = (
        options
        if isinstance(options, GradingRunOptions)
        else GradingRunOptions.model_validate(options or {})
    )
    return asyncio.run(
        run_grading_async(assignment, options_obj, cache=cache, transport=transport)
    )


async def run_grading_async(
    assignment: Assignment,
    options: GradingRunOptions,
    *,
    cache: AssessmentCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GradingRunReport:
    settings = get_settings()
    batch_size = _resolve_int(options.batch_size, settings.batch_size)
    max_parallel = _resolve_int(options.max_parallel, settings.max_parallel)
    retries = _resolve_int(options.max_validation_retries, settings.max_validation_retries)
    warn_threshold = _resolve_int(
        options.backend_error_warn_threshold, settings.backend_error_warn_threshold
    )
    skip_types = (
        options.skip_task_types if options.skip_task_types is not None else settings.skip_task_types
    )

    if cache is None:
        cache = build_assessment_cache(
            _resolve_str(options.cache_dir) or settings.cache_dir,
            scope=_resolve_choice(options.cache_scope, settings.cache_scope),
        )

    context = RunContext(
        max_validation_retries=retries,
        backend_error_warn_threshold=warn_threshold,
    )
    units, excluded = collect_grading_units(assignment, context.log, skip_task_types=skip_types)

    client = AssessorClient(
        _resolve_str(options.backend_url) or settings.backend_url,
        api_key=_resolve_str(options.api_key) or settings.api_key,
        timeout=_resolve_float(options.request_timeout, settings.request_timeout),
        transport=transport,
    )
    async with client:
        pipeline = GradingPipeline(
            client,
            cache,
            AssignmentSubmissionSink(assignment),
            batch_size=batch_size,
            max_parallel=max_parallel,
            max_validation_retries=retries,
            backend_error_warn_threshold=warn_threshold,
        )
        return await pipeline.run(units, context=context, excluded=excluded)


def _resolve_choice(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value).strip().lower() or default


def _resolve_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _resolve_int(value: Any, default: int) -> int:
    if value is None:
        return int(default)
    return int(str(value))


def _resolve_float(value: Any, default: float) -> float:
    if value is None:
        return float(default)
    return float(str(value))


__all__ = ["run_grading", "run_grading_async"]
