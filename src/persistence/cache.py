"""Assessment cache: JSON payload files indexed in sqlite by fingerprint pair."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone, timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError

from persistence.contracts import CacheStore
from persistence.hashing import assessment_cache_key, sha256_bytes
from persistence.models import AssessmentRecord
from persistence.sqlite_store import SqliteStore
from schemas.internal.assessments import (
    AssessmentResult,
    assessment_from_payload,
    assessment_to_payload,
)

logger = logging.getLogger(__name__)

CacheScope = Literal["assessment", "none"]

ASSESSMENT_SCOPE = "assessment"
CACHE_SCOPES: tuple[str, ...] = (ASSESSMENT_SCOPE, "none")


def resolve_cache_scope(scope: str | None) -> str:
    resolved = (scope or "none").strip().lower()
    if resolved not in CACHE_SCOPES:
        raise ValueError(
            f"Unknown cache scope: {scope!r} (expected one of {', '.join(CACHE_SCOPES)})"
        )
    return resolved


class CacheManager:
    def __init__(
        self, base_dir: str | Path, store: CacheStore, *, scope: str = ASSESSMENT_SCOPE
    ) -> None:
        self._scope = resolve_cache_scope(scope)
        self._base_dir = Path(base_dir)
        self._cache_dir = self._base_dir / "cache"
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        self._store = store

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def enabled(self) -> bool:
        return self._scope == ASSESSMENT_SCOPE

    def get_payload(
        self, reference_fingerprint: str, response_fingerprint: str
    ) -> dict[str, Any] | None:
        if not self.enabled:
            return None
        record = self._store.get_assessment(reference_fingerprint, response_fingerprint)
        if record is None:
            return None
        path = Path(record.path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Discarding unreadable cache payload %s: %s", path, exc)
            return None
        if not isinstance(payload, dict):
            logger.warning("Discarding cache payload that is not an object: %s", path)
            return None
        self._store.touch_assessment(reference_fingerprint, response_fingerprint)
        return payload

    def set_payload(
        self,
        reference_fingerprint: str,
        response_fingerprint: str,
        payload: dict[str, Any],
    ) -> AssessmentRecord:
        if not self.enabled:
            raise ValueError(f"Cache scope {self._scope!r} does not store assessments")
        key = assessment_cache_key(reference_fingerprint, response_fingerprint)
        if key is None:
            raise ValueError("Both fingerprints are required to cache an assessment")
        path = self._payload_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)
        path.write_text(text, encoding="utf-8")
        record = AssessmentRecord(
            reference_fingerprint=reference_fingerprint,
            response_fingerprint=response_fingerprint,
            payload_hash=sha256_bytes(text.encode("utf-8")),
            path=str(path),
            created_at=datetime.now(timezone.utc),
            last_accessed=None,
        )
        self._store.put_assessment(record)
        return record

    def stats(self) -> dict[str, Any]:
        return self._store.assessment_stats()

    def prune_older_than(self, *, days: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        removed = 0
        for record in self._store.list_assessments_older_than(cutoff):
            Path(record.path).unlink(missing_ok=True)
            self._store.delete_assessment(record.reference_fingerprint, record.response_fingerprint)
            removed += 1
        return removed

    def _payload_path(self, key: str) -> Path:
        return self._cache_dir / ASSESSMENT_SCOPE / key[:2] / f"{key}.json"


class PersistentAssessmentCache:
    """AssessmentCache backed by a CacheManager. Unusable entries read as misses."""

    def __init__(self, manager: CacheManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> CacheManager:
        return self._manager

    def get(self, reference_fingerprint: str, response_fingerprint: str) -> AssessmentResult | None:
        if not reference_fingerprint or not response_fingerprint:
            return None
        try:
            payload = self._manager.get_payload(reference_fingerprint, response_fingerprint)
        except sqlite3.Error as exc:
            logger.warning("Assessment cache index unavailable: %s", exc)
            return None
        if payload is None:
            return None
        try:
            return assessment_from_payload(payload)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed cached assessment for %s: %d validation error(s)",
                assessment_cache_key(reference_fingerprint, response_fingerprint),
                exc.error_count(),
            )
            return None

    def put(
        self,
        reference_fingerprint: str,
        response_fingerprint: str,
        result: AssessmentResult,
    ) -> None:
        if not self._manager.enabled:
            return
        if not reference_fingerprint or not response_fingerprint:
            return
        self._manager.set_payload(
            reference_fingerprint, response_fingerprint, assessment_to_payload(result)
        )


class InMemoryAssessmentCache:
    """Process-local AssessmentCache, used when persistence is disabled."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        key = assessment_cache_key(*pair)
        return key is not None and key in self._entries

    def get(self, reference_fingerprint: str, response_fingerprint: str) -> AssessmentResult | None:
        key = assessment_cache_key(reference_fingerprint, response_fingerprint)
        if key is None or key not in self._entries:
            return None
        return assessment_from_payload(self._entries[key])

    def put(
        self,
        reference_fingerprint: str,
        response_fingerprint: str,
        result: AssessmentResult,
    ) -> None:
        key = assessment_cache_key(reference_fingerprint, response_fingerprint)
        if key is None:
            return
        self._entries[key] = assessment_to_payload(result)


def build_assessment_cache(
    base_dir: str | Path | None,
    *,
    scope: str | None,
) -> PersistentAssessmentCache | InMemoryAssessmentCache:
    """Return the persistent cache for a scope, or an in-memory one when disabled.

    Raises ValueError for an unknown scope.
    """
    resolved_scope = resolve_cache_scope(scope)
    if resolved_scope == "none" or not base_dir:
        return InMemoryAssessmentCache()
    store = SqliteStore(Path(base_dir) / "metadata.sqlite")
    return PersistentAssessmentCache(CacheManager(base_dir, store, scope=resolved_scope))


__all__ = [
    "ASSESSMENT_SCOPE",
    "CACHE_SCOPES",
    "CacheManager",
    "CacheScope",
    "InMemoryAssessmentCache",
    "PersistentAssessmentCache",
    "build_assessment_cache",
    "resolve_cache_scope",
]
