"""Service-layer helpers for assignment input/output."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from schemas.internal.assignments import Assignment


def load_assignment(path: str | Path) -> Assignment:
    """Read and validate an assignment JSON document."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Assignment file not found: {source}")
    payload = json.loads(source.read_text(encoding="utf-8"))
    return Assignment.model_validate(payload)


def save_assignment(assignment: Assignment, path: str | Path) -> Path:
    """Write the assignment as JSON, replacing the target atomically."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(assignment.model_dump(mode="json"), ensure_ascii=False, indent=2)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        delete=False,
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    ) as handle:
        handle.write(text)
        handle.flush()
        tmp_path = Path(handle.name)
    try:
        os.replace(tmp_path, target)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return target


__all__ = ["load_assignment", "save_assignment"]
