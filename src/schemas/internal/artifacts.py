"""Task artifact contracts with per-type content normalisation.

Artifacts carry the extracted content of one task for one role: the model
answer (``reference``), the blank starting point (``template``) or a student's
work (``submission``). Content is normalised on construction so that the
fingerprint only depends on what the student actually wrote, not on line
endings, surrounding whitespace or trailing empty table cells.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from persistence.hashing import fingerprint_content

TaskType = Literal["TEXT", "TABLE", "SPREADSHEET", "IMAGE"]
ArtifactRole = Literal["reference", "template", "submission"]

Cell = Union[int, float, str, None]
ArtifactContent = Union[str, List[List[Cell]], None]

TASK_TYPES: tuple[str, ...] = ("TEXT", "TABLE", "SPREADSHEET", "IMAGE")


class TaskArtifact(BaseModel):
    task_id: str = Field(min_length=1)
    role: ArtifactRole
    task_type: TaskType = "TEXT"
    page_id: Optional[str] = None
    document_id: Optional[str] = None
    content: ArtifactContent = None
    content_hash: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    uid: Optional[str] = None
    task_index: Optional[int] = Field(default=None, exclude=True)
    artifact_index: int = Field(default=0, exclude=True)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        values = dict(data)
        task_type = str(values.get("task_type") or values.get("type") or "TEXT").upper()
        if task_type not in TASK_TYPES:
            raise ValueError(f"Unknown task type: {task_type}")
        values["task_type"] = task_type
        values["content"] = normalise_content(task_type, values.get("content"))
        if not values.get("content_hash"):
            values["content_hash"] = fingerprint_content(values["content"])
        return values

    @model_validator(mode="after")
    def _default_uid(self) -> "TaskArtifact":
        if not self.uid:
            task_index = self.task_index if self.task_index is not None else 0
            self.uid = (
                f"{self.task_id}-{task_index}-{self.role}-{self.page_id or 'na'}-{self.artifact_index}"
            )
        return self

    def is_empty(self) -> bool:
        return self.content is None

    def replace_content(self, content: Any) -> None:
        """Re-normalise new content and recompute the fingerprint from it."""
        self.content = normalise_content(self.task_type, content)
        self.content_hash = fingerprint_content(self.content)


def normalise_content(task_type: str, content: Any) -> ArtifactContent:
    if task_type == "TEXT":
        return _normalise_text(content)
    if task_type == "TABLE":
        return _normalise_table(content)
    if task_type == "SPREADSHEET":
        return _normalise_spreadsheet(content)
    if task_type == "IMAGE":
        return _normalise_image(content)
    raise ValueError(f"Unknown task type: {task_type}")


def _normalise_text(content: Any) -> str | None:
    if content is None:
        return None
    text = content if isinstance(content, str) else str(content)
    text = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    return text or None


def _normalise_table(content: Any) -> str | None:
    if content is None:
        return None
    if isinstance(content, str):
        return content.strip() or None
    if not isinstance(content, list):
        return None
    rows = _trim_empty(_normalise_rows(content))
    if not rows:
        return None
    return table_to_markdown(rows)


def _normalise_spreadsheet(content: Any) -> list[list[Cell]] | None:
    if content is None or isinstance(content, str) or not isinstance(content, list):
        return None
    rows = _trim_empty(_normalise_rows(content))
    if not rows:
        return None
    for row in rows:
        for idx, cell in enumerate(row):
            if isinstance(cell, str) and cell.startswith("="):
                row[idx] = canonicalise_formula(cell)
    return rows


def _normalise_image(content: Any) -> str | None:
    if not isinstance(content, str):
        return None
    return content.strip() or None


def _normalise_rows(content: list[Any]) -> list[list[Cell]]:
    return [
        [_normalise_cell(cell) for cell in row] if isinstance(row, list) else []
        for row in content
    ]


def _normalise_cell(cell: Any) -> Cell:
    if cell is None:
        return None
    if isinstance(cell, bool):
        return str(cell).upper()
    if isinstance(cell, (int, float)):
        return cell
    text = str(cell).strip()
    return text or None


def _cell_empty(cell: Cell) -> bool:
    return cell is None or cell == ""


def _trim_empty(rows: list[list[Cell]]) -> list[list[Cell]]:
    """Drop trailing empty rows, then every column that is empty in all rows."""
    while rows and all(_cell_empty(cell) for cell in rows[-1]):
        rows.pop()
    if not rows:
        return rows
    width = max(len(row) for row in rows)
    for col in range(width - 1, -1, -1):
        if all(col >= len(row) or _cell_empty(row[col]) for row in rows):
            for row in rows:
                if col < len(row):
                    del row[col]
    return rows


def canonicalise_formula(formula: str) -> str:
    """Upper-case a formula outside of double-quoted literals."""
    result: list[str] = []
    in_quote = False
    for char in formula:
        if char == '"':
            in_quote = not in_quote
            result.append(char)
            continue
        result.append(char if in_quote else char.upper())
    return "".join(result)


def table_to_markdown(rows: list[list[Cell]]) -> str:
    if not rows:
        return ""
    header = rows[0]
    lines = [
        "| " + " | ".join(_cell_text(cell) for cell in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    for row in rows[1:]:
        lines.append("| " + " | ".join(_cell_text(cell) for cell in row) + " |")
    return "\n".join(lines)


def _cell_text(cell: Cell) -> str:
    return "" if cell is None else str(cell)


__all__ = [
    "ArtifactContent",
    "ArtifactRole",
    "TASK_TYPES",
    "TaskArtifact",
    "TaskType",
    "canonicalise_formula",
    "normalise_content",
    "table_to_markdown",
]
