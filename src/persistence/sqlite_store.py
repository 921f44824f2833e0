"""SQLite index of cached assessments, keyed by (reference, response) fingerprints."""

from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from persistence.models import AssessmentRecord


_SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS assessments (
    reference_fingerprint TEXT NOT NULL,
    response_fingerprint TEXT NOT NULL,
    payload_hash TEXT NOT NULL,
    path TEXT NOT NULL,
    created_at TEXT NOT NULL,
    last_accessed TEXT,
    PRIMARY KEY(reference_fingerprint, response_fingerprint)
);
CREATE INDEX IF NOT EXISTS idx_assessments_created_at ON assessments(created_at);
"""

_PAIR_CLAUSE = "reference_fingerprint = ? AND response_fingerprint = ?"


class SqliteStore:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and always close it."""
        with closing(sqlite3.connect(self._path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _initialize(self) -> None:
        with self._connection() as conn:
            conn.executescript(_SCHEMA)

    def get_assessment(
        self, reference_fingerprint: str, response_fingerprint: str
    ) -> AssessmentRecord | None:
        row = self._fetch_one(
            f"SELECT * FROM assessments WHERE {_PAIR_CLAUSE}",
            (reference_fingerprint, response_fingerprint),
        )
        return _row_to_record(row) if row else None

    def put_assessment(self, record: AssessmentRecord) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO assessments (
                    reference_fingerprint, response_fingerprint, payload_hash, path,
                    created_at, last_accessed
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.reference_fingerprint,
                    record.response_fingerprint,
                    record.payload_hash,
                    record.path,
                    record.created_at.isoformat(),
                    record.last_accessed.isoformat() if record.last_accessed else None,
                ),
            )

    def touch_assessment(self, reference_fingerprint: str, response_fingerprint: str) -> None:
        with self._connection() as conn:
            conn.execute(
                f"UPDATE assessments SET last_accessed = ? WHERE {_PAIR_CLAUSE}",
                (_now_iso(), reference_fingerprint, response_fingerprint),
            )

    def delete_assessment(self, reference_fingerprint: str, response_fingerprint: str) -> None:
        with self._connection() as conn:
            conn.execute(
                f"DELETE FROM assessments WHERE {_PAIR_CLAUSE}",
                (reference_fingerprint, response_fingerprint),
            )

    def assessment_stats(self) -> dict[str, Any]:
        row = self._fetch_one(
            """
            SELECT COUNT(*) AS entries,
                   COUNT(DISTINCT reference_fingerprint) AS reference_count,
                   MIN(created_at) AS oldest,
                   MAX(created_at) AS newest,
                   MAX(last_accessed) AS last_accessed
              FROM assessments
            """
        )
        return dict(row) if row else {"entries": 0}

    def list_assessments_older_than(self, cutoff: datetime) -> list[AssessmentRecord]:
        rows = self._fetch_all(
            "SELECT * FROM assessments WHERE created_at < ? ORDER BY created_at",
            (cutoff.isoformat(),),
        )
        return [_row_to_record(row) for row in rows]

    def _fetch_one(self, query: str, params: tuple[object, ...] = ()) -> sqlite3.Row | None:
        with self._connection() as conn:
            return conn.execute(query, params).fetchone()

    def _fetch_all(self, query: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        with self._connection() as conn:
            return conn.execute(query, params).fetchall()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_record(row: sqlite3.Row) -> AssessmentRecord:
    return AssessmentRecord(
        reference_fingerprint=row["reference_fingerprint"],
        response_fingerprint=row["response_fingerprint"],
        payload_hash=row["payload_hash"],
        path=row["path"],
        created_at=datetime.fromisoformat(row["created_at"]),
        last_accessed=(
            datetime.fromisoformat(row["last_accessed"]) if row["last_accessed"] else None
        ),
    )


__all__ = ["SqliteStore"]
