import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from persistence.cache import (
    ASSESSMENT_SCOPE,
    CacheManager,
    InMemoryAssessmentCache,
    PersistentAssessmentCache,
    build_assessment_cache,
    resolve_cache_scope,
)
from persistence.hashing import assessment_cache_key
from persistence.models import AssessmentRecord
from persistence.sqlite_store import SqliteStore
from schemas.internal.assessments import CriterionAssessment


def _result(score=3) -> dict[str, CriterionAssessment]:
    return {
        name: CriterionAssessment(score=score, reasoning=f"{name} reasoning")
        for name in ("completeness", "accuracy", "spag")
    }


def _payload_path(base: Path, ref: str, resp: str) -> Path:
    key = assessment_cache_key(ref, resp)
    return base / "cache" / ASSESSMENT_SCOPE / key[:2] / f"{key}.json"


def test_in_memory_cache_is_reference_scoped() -> None:
    cache = InMemoryAssessmentCache()
    cache.put("ref-a", "resp", _result())
    assert cache.get("ref-a", "resp") == _result()
    assert cache.get("ref-b", "resp") is None
    assert ("ref-a", "resp") in cache
    assert len(cache) == 1


def test_persistent_cache_survives_new_instances(tmp_path: Path) -> None:
    first = build_assessment_cache(tmp_path, scope="assessment")
    assert isinstance(first, PersistentAssessmentCache)
    first.put("ref", "resp", _result(score=4.5))

    second = build_assessment_cache(tmp_path, scope="assessment")
    assert second.get("ref", "resp") == _result(score=4.5)
    assert second.get("other-ref", "resp") is None

    stored = _payload_path(tmp_path, "ref", "resp")
    assert json.loads(stored.read_text(encoding="utf-8"))["spag"]["score"] == 4.5


def test_scope_none_uses_in_memory_cache(tmp_path: Path) -> None:
    cache = build_assessment_cache(tmp_path, scope="none")
    assert isinstance(cache, InMemoryAssessmentCache)
    assert not (tmp_path / "metadata.sqlite").exists()


def test_unknown_scope_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unknown cache scope"):
        build_assessment_cache(tmp_path, scope="assessments")
    with pytest.raises(ValueError):
        CacheManager(tmp_path, SqliteStore(tmp_path / "metadata.sqlite"), scope="deterministic")
    assert resolve_cache_scope(" Assessment ") == "assessment"
    assert resolve_cache_scope(None) == "none"


def test_unreadable_payload_is_a_miss(tmp_path: Path) -> None:
    cache = build_assessment_cache(tmp_path, scope="assessment")
    cache.put("ref", "resp", _result())
    _payload_path(tmp_path, "ref", "resp").write_text("{not json", encoding="utf-8")
    assert cache.get("ref", "resp") is None


def test_wrong_shape_payload_is_a_logged_miss(tmp_path: Path, caplog) -> None:
    cache = build_assessment_cache(tmp_path, scope="assessment")
    cache.put("ref", "resp", _result())
    cache.put("ref", "listed", _result())
    _payload_path(tmp_path, "ref", "resp").write_text(
        json.dumps({"accuracy": {"score": 1}}), encoding="utf-8"
    )
    _payload_path(tmp_path, "ref", "listed").write_text("[1, 2]", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="persistence.cache"):
        assert cache.get("ref", "resp") is None
        assert cache.get("ref", "listed") is None

    assert any("malformed cached assessment" in record.message for record in caplog.records)
    assert any("not an object" in record.message for record in caplog.records)


def test_payload_read_error_is_a_logged_miss(tmp_path: Path, caplog) -> None:
    cache = build_assessment_cache(tmp_path, scope="assessment")
    cache.put("ref", "resp", _result())
    path = _payload_path(tmp_path, "ref", "resp")
    path.unlink()
    path.mkdir()

    with caplog.at_level(logging.WARNING, logger="persistence.cache"):
        assert cache.get("ref", "resp") is None
    assert any("unreadable cache payload" in record.message for record in caplog.records)


def test_missing_payload_file_is_a_miss(tmp_path: Path) -> None:
    cache = build_assessment_cache(tmp_path, scope="assessment")
    cache.put("ref", "resp", _result())
    _payload_path(tmp_path, "ref", "resp").unlink()
    assert cache.get("ref", "resp") is None


def test_cache_manager_with_scope_none_stores_nothing(tmp_path: Path) -> None:
    manager = CacheManager(tmp_path, SqliteStore(tmp_path / "metadata.sqlite"), scope="none")
    assert not manager.enabled
    assert manager.get_payload("ref", "resp") is None
    with pytest.raises(ValueError):
        manager.set_payload("ref", "resp", {})
    PersistentAssessmentCache(manager).put("ref", "resp", _result())
    assert manager.stats()["entries"] == 0


def test_prune_removes_old_entries(tmp_path: Path) -> None:
    store = SqliteStore(tmp_path / "metadata.sqlite")
    manager = CacheManager(tmp_path, store)
    fresh = manager.set_payload("ref", "fresh", {"a": 1})
    stale_path = tmp_path / "stale.json"
    stale_path.write_text("{}", encoding="utf-8")
    store.put_assessment(
        AssessmentRecord(
            reference_fingerprint="ref",
            response_fingerprint="stale",
            payload_hash="h",
            path=str(stale_path),
            created_at=datetime.now(timezone.utc) - timedelta(days=90),
            last_accessed=None,
        )
    )

    assert manager.prune_older_than(days=30) == 1
    assert not stale_path.exists()
    assert Path(fresh.path).exists()
    assert store.get_assessment("ref", "stale") is None
    stats = manager.stats()
    assert stats["entries"] == 1
    assert stats["reference_count"] == 1
