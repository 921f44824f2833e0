"""Commit grading outcomes to units, the cache and the submission store."""

from __future__ import annotations

import logging
import sqlite3
from typing import Mapping

from grading.context import RunLog
from persistence.contracts import AssessmentCache, SubmissionSink
from schemas.internal.assessments import CriterionAssessment, assessment_to_payload
from schemas.internal.assignments import Assignment, SubmissionItem
from schemas.internal.units import GradingUnit

logger = logging.getLogger(__name__)


class ResultWriter:
    def __init__(self, cache: AssessmentCache, sink: SubmissionSink, run_log: RunLog) -> None:
        self._cache = cache
        self._sink = sink
        self._log = run_log

    def write_success(self, unit: GradingUnit, result: Mapping[str, CriterionAssessment]) -> None:
        """Cache first, then the unit; a failed cache write only warns."""
        try:
            self._cache.put(unit.reference_fingerprint, unit.response_fingerprint, dict(result))
        except (OSError, sqlite3.Error) as exc:
            self._log.warning(
                f"Could not cache the assessment for {unit.uid}; it will be regraded next run.",
                uid=unit.uid,
                outcome="cache_write_failed",
                detail={"error": f"{type(exc).__name__}: {exc}"},
            )
        self.write_assigned(unit, result)

    def write_assigned(self, unit: GradingUnit, result: Mapping[str, CriterionAssessment]) -> None:
        for criterion, assessment in result.items():
            unit.assessments[criterion] = assessment
        self._sink.commit(unit)


class AssignmentSubmissionSink:
    """SubmissionSink over an in-memory Assignment."""

    def __init__(self, assignment: Assignment) -> None:
        self._assignment = assignment

    def commit(self, unit: GradingUnit) -> None:
        submission = self._assignment.find_submission(unit.student_id)
        if submission is None:
            raise LookupError(f"No submission for student {unit.student_id}")
        item = _find_item(submission.items, unit.task_id)
        if item is None:
            raise LookupError(f"Student {unit.student_id} has no item for task {unit.task_id}")
        item.assessments.update(assessment_to_payload(unit.assessments))
        item.feedback.update(unit.feedback)
        submission.touch()
        logger.debug("committed %s to submission %s", unit.uid, submission.student_id)


def _find_item(items: Mapping[str, SubmissionItem], task_id: str) -> SubmissionItem | None:
    item = items.get(task_id)
    if item is not None:
        return item
    for candidate in items.values():
        if candidate.task_id == task_id:
            return candidate
    return None


__all__ = ["AssignmentSubmissionSink", "ResultWriter"]
