"""Assessment result contracts shared by the cache and the grading pipeline."""

from __future__ import annotations

from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict

REQUIRED_CRITERIA: tuple[str, ...] = ("completeness", "accuracy", "spag")

NOT_ATTEMPTED_SCORE = "N"
NOT_ATTEMPTED_REASONING = "Task not attempted"


class CriterionAssessment(BaseModel):
    score: Union[int, float, str]
    reasoning: str

    model_config = ConfigDict(extra="ignore", frozen=True)


AssessmentResult = dict[str, CriterionAssessment]


def not_attempted_assessment() -> AssessmentResult:
    """Every required criterion at the not-attempted sentinel."""
    return {
        criterion: CriterionAssessment(
            score=NOT_ATTEMPTED_SCORE, reasoning=NOT_ATTEMPTED_REASONING
        )
        for criterion in REQUIRED_CRITERIA
    }


def assessment_to_payload(result: Mapping[str, CriterionAssessment]) -> dict[str, dict[str, Any]]:
    return {criterion: item.model_dump() for criterion, item in result.items()}


def assessment_from_payload(payload: Mapping[str, Any]) -> AssessmentResult:
    return {
        str(criterion): CriterionAssessment.model_validate(item)
        for criterion, item in payload.items()
    }


__all__ = [
    "AssessmentResult",
    "CriterionAssessment",
    "NOT_ATTEMPTED_REASONING",
    "NOT_ATTEMPTED_SCORE",
    "REQUIRED_CRITERIA",
    "assessment_from_payload",
    "assessment_to_payload",
    "not_attempted_assessment",
]
