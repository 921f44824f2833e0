"""Decide, per grading unit, whether a backend call is needed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from grading.context import RunLog
from persistence.contracts import AssessmentCache
from schemas.internal.assessments import AssessmentResult, not_attempted_assessment
from schemas.internal.assignments import Assignment
from schemas.internal.units import GradingUnit
from schemas.wire import AssessorRequest

logger = logging.getLogger(__name__)


class PlanOutcome(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    CACHED = "cached"
    DISPATCH = "dispatch"


@dataclass(frozen=True)
class DispatchRequest:
    uid: str
    task_type: str
    reference: object
    template: object
    response: object

    @classmethod
    def from_unit(cls, unit: GradingUnit) -> "DispatchRequest":
        return cls(
            uid=unit.uid,
            task_type=unit.task_type,
            reference=unit.reference_content,
            template=unit.template_content,
            response=unit.response_content,
        )

    def to_wire(self) -> AssessorRequest:
        return AssessorRequest(
            task_type=self.task_type,
            reference=self.reference,
            template=self.template,
            student_response=self.response,
        )


@dataclass
class GradingPlan:
    not_attempted: list[tuple[GradingUnit, AssessmentResult]] = field(default_factory=list)
    cached: list[tuple[GradingUnit, AssessmentResult]] = field(default_factory=list)
    requests: list[DispatchRequest] = field(default_factory=list)
    outcomes: dict[str, PlanOutcome] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.outcomes)


def collect_grading_units(
    assignment: Assignment,
    run_log: RunLog,
    *,
    skip_task_types: Iterable[str] = ("SPREADSHEET",),
) -> tuple[list[GradingUnit], int]:
    """Build units for every submission item; return (units, excluded count)."""
    skipped = {task_type.upper() for task_type in skip_task_types}
    units: list[GradingUnit] = []
    seen: set[str] = set()
    excluded = 0
    for submission in assignment.submissions:
        for task_id, item in submission.items.items():
            task = assignment.tasks.get(item.task_id or task_id)
            if task is None:
                run_log.error(
                    f"No task definition for task {item.task_id} "
                    f"(student {submission.student_id}); item excluded.",
                    outcome="excluded",
                    detail={"task_id": item.task_id, "student_id": submission.student_id},
                )
                excluded += 1
                continue
            if item.artifact.task_type in skipped:
                run_log.info(
                    f"Task {task.title} is {item.artifact.task_type} and is not assessed "
                    f"remotely (student {submission.student_id}).",
                    outcome="excluded",
                    detail={"task_id": task.id, "task_type": item.artifact.task_type},
                )
                excluded += 1
                continue
            try:
                unit = GradingUnit.from_submission_item(submission, item, task)
            except ValueError as exc:
                run_log.error(
                    f"{exc}; item for student {submission.student_id} excluded.",
                    outcome="excluded",
                    detail={"task_id": task.id, "errors": task.validation_errors()},
                )
                excluded += 1
                continue
            if unit.uid in seen:
                run_log.error(
                    f"Duplicate item for task {unit.task_id} "
                    f"(student {submission.student_id}); item excluded.",
                    outcome="excluded",
                    detail={"task_id": unit.task_id, "student_id": unit.student_id},
                )
                excluded += 1
                continue
            seen.add(unit.uid)
            units.append(unit)
    logger.debug("collected %d grading units (%d excluded)", len(units), excluded)
    return units, excluded


def plan_units(units: Sequence[GradingUnit], cache: AssessmentCache) -> GradingPlan:
    """Split units into synthesised, cache-assigned and pending-dispatch."""
    plan = GradingPlan()
    for unit in units:
        if unit.uid in plan.outcomes:
            raise ValueError(f"Duplicate grading unit uid: {unit.uid}")
        if unit.not_attempted:
            plan.not_attempted.append((unit, not_attempted_assessment()))
            plan.outcomes[unit.uid] = PlanOutcome.NOT_ATTEMPTED
            continue
        cached = cache.get(unit.reference_fingerprint, unit.response_fingerprint)
        if cached is not None:
            plan.cached.append((unit, cached))
            plan.outcomes[unit.uid] = PlanOutcome.CACHED
            continue
        plan.requests.append(DispatchRequest.from_unit(unit))
        plan.outcomes[unit.uid] = PlanOutcome.DISPATCH
    logger.info(
        "planned %d units: %d not attempted, %d cached, %d to dispatch",
        plan.total,
        len(plan.not_attempted),
        len(plan.cached),
        len(plan.requests),
    )
    return plan


__all__ = [
    "DispatchRequest",
    "GradingPlan",
    "PlanOutcome",
    "collect_grading_units",
    "plan_units",
]
