"""Grading backend wire contracts for ``POST /v1/assessor``."""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr

from schemas.internal.assessments import AssessmentResult, CriterionAssessment

ASSESSOR_PATH = "/v1/assessor"


class AssessorRequest(BaseModel):
    task_type: str = Field(serialization_alias="taskType")
    reference: Any = None
    template: Any = None
    student_response: Any = Field(default=None, serialization_alias="studentResponse")

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        payload["taskType"] = str(payload["taskType"]).upper()
        return payload


class WireCriterion(BaseModel):
    score: Union[StrictInt, StrictFloat]
    reasoning: StrictStr

    model_config = ConfigDict(extra="ignore")


class AssessorResponse(BaseModel):
    completeness: WireCriterion
    accuracy: WireCriterion
    spag: WireCriterion

    model_config = ConfigDict(extra="ignore")

    def to_assessment(self) -> AssessmentResult:
        return {
            name: CriterionAssessment(score=criterion.score, reasoning=criterion.reasoning)
            for name, criterion in (
                ("completeness", self.completeness),
                ("accuracy", self.accuracy),
                ("spag", self.spag),
            )
        }


def lowercase_keys(value: Any) -> Any:
    """Recursively lower-case mapping keys of a decoded JSON payload."""
    if isinstance(value, dict):
        return {str(key).lower(): lowercase_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [lowercase_keys(item) for item in value]
    return value


__all__ = [
    "ASSESSOR_PATH",
    "AssessorRequest",
    "AssessorResponse",
    "WireCriterion",
    "lowercase_keys",
]
