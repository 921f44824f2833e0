"""Persistence subsystem exports."""

from persistence.cache import (
    CacheManager,
    InMemoryAssessmentCache,
    PersistentAssessmentCache,
    build_assessment_cache,
)
from persistence.sqlite_store import SqliteStore

__all__ = [
    "CacheManager",
    "InMemoryAssessmentCache",
    "PersistentAssessmentCache",
    "SqliteStore",
    "build_assessment_cache",
]
