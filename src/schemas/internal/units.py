"""In-memory grading unit: one (task, student response) pairing for a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from persistence.hashing import fingerprint_content, hash_payload
from schemas.internal.assessments import CriterionAssessment
from schemas.internal.assignments import StudentSubmission, SubmissionItem, TaskDefinition


def unit_uid(student_id: str, task_id: str, page_id: str) -> str:
    """Derive the run-stable uid of a (student, task, page) unit."""
    return "gu_" + hash_payload([student_id, task_id, page_id])[:24]


@dataclass
class GradingUnit:
    uid: str
    task_id: str
    student_id: str
    task_type: str
    reference_content: Any
    template_content: Any
    response_content: Any
    reference_fingerprint: str = field(init=False)
    template_fingerprint: str = field(init=False)
    response_fingerprint: str = field(init=False)
    assessments: dict[str, CriterionAssessment] = field(default_factory=dict)
    feedback: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.task_type = self.task_type.upper()
        self.reference_fingerprint = fingerprint_content(self.reference_content)
        self.template_fingerprint = fingerprint_content(self.template_content)
        self.response_fingerprint = fingerprint_content(self.response_content)

    @property
    def not_attempted(self) -> bool:
        """Response is identical to the blank template, or empty."""
        return (
            self.response_fingerprint == self.template_fingerprint
            or self.response_content is None
        )

    @property
    def graded(self) -> bool:
        return bool(self.assessments)

    @classmethod
    def from_submission_item(
        cls,
        submission: StudentSubmission,
        item: SubmissionItem,
        task: TaskDefinition,
    ) -> "GradingUnit":
        reference = task.primary_reference
        template = task.primary_template
        if reference is None or template is None:
            raise ValueError(f"Task {task.id} is missing a reference or template artifact")
        page_id = item.artifact.page_id or task.page_id or "na"
        return cls(
            uid=unit_uid(submission.student_id, item.task_id, page_id),
            task_id=item.task_id,
            student_id=submission.student_id,
            task_type=item.artifact.task_type,
            reference_content=reference.content,
            template_content=template.content,
            response_content=item.artifact.content,
            feedback=dict(item.feedback),
        )


__all__ = ["GradingUnit", "unit_uid"]
