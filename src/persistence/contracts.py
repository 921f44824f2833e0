"""Persistence protocol contracts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from persistence.models import AssessmentRecord

if TYPE_CHECKING:
    from schemas.internal.assessments import AssessmentResult
    from schemas.internal.units import GradingUnit


class CacheStore(Protocol):
    def get_assessment(
        self, reference_fingerprint: str, response_fingerprint: str
    ) -> AssessmentRecord | None: ...

    def put_assessment(self, record: AssessmentRecord) -> None: ...

    def touch_assessment(self, reference_fingerprint: str, response_fingerprint: str) -> None: ...

    def delete_assessment(self, reference_fingerprint: str, response_fingerprint: str) -> None: ...

    def assessment_stats(self) -> dict[str, Any]: ...

    def list_assessments_older_than(self, cutoff: datetime) -> list[AssessmentRecord]: ...


class AssessmentCache(Protocol):
    """Reference-scoped store of previously computed assessments."""

    def get(
        self, reference_fingerprint: str, response_fingerprint: str
    ) -> "AssessmentResult | None": ...

    def put(
        self,
        reference_fingerprint: str,
        response_fingerprint: str,
        result: "AssessmentResult",
    ) -> None: ...


class SubmissionSink(Protocol):
    """Commits a graded unit back into its owning submission."""

    def commit(self, unit: "GradingUnit") -> None: ...


__all__ = ["AssessmentCache", "CacheStore", "SubmissionSink"]
