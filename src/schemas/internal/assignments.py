"""Assignment, task definition and student submission contracts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from persistence.hashing import sha256_text
from schemas.internal.artifacts import TaskArtifact


class TaskDefinition(BaseModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    page_id: Optional[str] = None
    notes: Optional[str] = None
    index: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    references: List[TaskArtifact] = Field(default_factory=list)
    templates: List[TaskArtifact] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _derive_id(self) -> "TaskDefinition":
        if not self.id:
            base = f"{self.title}::{self.page_id or ''}"
            self.id = "t_" + sha256_text(base)[:12]
        return self

    @property
    def primary_reference(self) -> TaskArtifact | None:
        return self.references[0] if self.references else None

    @property
    def primary_template(self) -> TaskArtifact | None:
        return self.templates[0] if self.templates else None

    @property
    def task_type(self) -> str:
        reference = self.primary_reference
        if reference is not None:
            return reference.task_type
        return str(self.metadata.get("task_type") or "TEXT").upper()

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if not self.references:
            errors.append("TaskDefinition missing reference artifact")
        if not self.templates:
            errors.append("TaskDefinition missing template artifact")
        return errors


class SubmissionItem(BaseModel):
    id: Optional[str] = None
    task_id: str = Field(min_length=1)
    artifact: TaskArtifact
    assessments: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    feedback: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _derive_id(self) -> "SubmissionItem":
        if not self.id:
            resolved = self.artifact.uid or self.artifact.content_hash or ""
            self.id = "ssi_" + sha256_text(f"{self.task_id}::{resolved}")[:16]
        return self


class StudentSubmission(BaseModel):
    student_id: str = Field(min_length=1)
    assignment_id: str = Field(min_length=1)
    document_id: Optional[str] = None
    student_name: Optional[str] = None
    items: Dict[str, SubmissionItem] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(extra="ignore")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def touch(self) -> None:
        now = datetime.now(timezone.utc)
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now


class Assignment(BaseModel):
    assignment_id: str = Field(min_length=1)
    title: Optional[str] = None
    tasks: Dict[str, TaskDefinition] = Field(default_factory=dict)
    submissions: List[StudentSubmission] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def find_submission(self, student_id: str) -> StudentSubmission | None:
        for submission in self.submissions:
            if submission.student_id == student_id:
                return submission
        return None


__all__ = [
    "Assignment",
    "StudentSubmission",
    "SubmissionItem",
    "TaskDefinition",
]
