"""Hashing helpers for content fingerprints and cache keys."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def sha256_bytes(data: bytes) -> str:
    """Return hex sha256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str) -> str:
    """Return hex sha256 of UTF-8 encoded text."""
    return sha256_bytes(text.encode("utf-8"))


def stable_json_dumps(payload: object) -> str:
    """Dump JSON with stable ordering for hashing."""
    return json.dumps(
        payload,
        ensure_ascii=True,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_default,
    )


def hash_payload(payload: object) -> str:
    """Return sha256 hash of a JSON-serializable payload."""
    return sha256_text(stable_json_dumps(payload))


def fingerprint_content(content: Any) -> str:
    """Fingerprint extracted artifact content.

    The full content is serialised with sorted keys before hashing, so equal
    content always yields the same fingerprint regardless of dict ordering,
    process or run. ``None`` (empty content) has a fingerprint of its own.
    """
    return hash_payload(content)


def assessment_cache_key(
    reference_fingerprint: str | None,
    response_fingerprint: str | None,
) -> str | None:
    """Return the cache key for a (reference, response) pair.

    Keys are reference-scoped: the same response against another reference
    produces another key. Returns None when either fingerprint is missing.
    """
    if not reference_fingerprint or not response_fingerprint:
        return None
    return sha256_text(f"{reference_fingerprint}|{response_fingerprint}")


def _json_default(value: object) -> Any:
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


__all__ = [
    "assessment_cache_key",
    "fingerprint_content",
    "hash_payload",
    "sha256_bytes",
    "sha256_text",
    "stable_json_dumps",
]
