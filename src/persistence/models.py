"""Lightweight persistence records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from persistence.hashing import assessment_cache_key


@dataclass(frozen=True)
class AssessmentRecord:
    """Index row for one cached assessment of a (reference, response) pair."""

    reference_fingerprint: str
    response_fingerprint: str
    payload_hash: str
    path: str
    created_at: datetime
    last_accessed: datetime | None

    @property
    def cache_key(self) -> str:
        key = assessment_cache_key(self.reference_fingerprint, self.response_fingerprint)
        if key is None:
            raise ValueError("AssessmentRecord requires both fingerprints")
        return key


__all__ = ["AssessmentRecord"]
