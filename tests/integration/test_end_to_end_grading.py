from __future__ import annotations

from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from schemas.internal.artifacts import TaskArtifact
from schemas.internal.assignments import Assignment, StudentSubmission, SubmissionItem, TaskDefinition
from services.grading_runner import run_grading
from services.io import load_assignment, save_assignment


def build_fake_backend(calls: list[dict[str, Any]], api_key: str = "secret") -> FastAPI:
    app = FastAPI()

    @app.post("/v1/assessor")
    async def assess(request: Request, authorization: str | None = Header(default=None)):
        if authorization != f"Bearer {api_key}":
            raise HTTPException(status_code=401, detail="invalid api key")
        payload = await request.json()
        calls.append(payload)
        if not payload.get("studentResponse"):
            return JSONResponse({"error": "empty"}, status_code=400)
        length = len(str(payload["studentResponse"]))
        return {
            "Completeness": {"score": min(5, length // 5), "reasoning": "length based"},
            "Accuracy": {"score": 3, "reasoning": "plausible"},
            "SPaG": {"score": 4.5, "reasoning": "clean"},
        }

    return app


def _assignment() -> Assignment:
    def artifact(task_id: str, role: str, content: Any, task_type: str = "TEXT") -> TaskArtifact:
        return TaskArtifact(task_id=task_id, role=role, task_type=task_type, content=content)

    tasks = {
        "t1": TaskDefinition(
            id="t1",
            title="What does the mitochondria do?",
            page_id="p1",
            references=[artifact("t1", "reference", "The mitochondria is the powerhouse of the cell")],
            templates=[artifact("t1", "template", "Write your answer here")],
        ),
        "t2": TaskDefinition(
            id="t2",
            title="Complete the table",
            page_id="p2",
            references=[artifact("t2", "reference", [["Organelle", "Role"], ["Nucleus", "Control"]], "TABLE")],
            templates=[artifact("t2", "template", [["Organelle", "Role"], ["Nucleus", ""]], "TABLE")],
        ),
    }
    answers = {
        "s1": ("It releases energy for the cell", [["Organelle", "Role"], ["Nucleus", "Control"]]),
        "s2": ("Write your answer here", [["Organelle", "Role"], ["Nucleus", ""]]),
        "s3": ("It releases energy for the cell", [["Organelle", "Role"], ["Nucleus", "DNA"]]),
    }
    submissions = [
        StudentSubmission(
            student_id=student_id,
            assignment_id="bio-1",
            items={
                "t1": SubmissionItem(task_id="t1", artifact=artifact("t1", "submission", text)),
                "t2": SubmissionItem(task_id="t2", artifact=artifact("t2", "submission", table, "TABLE")),
            },
        )
        for student_id, (text, table) in answers.items()
    ]
    return Assignment(assignment_id="bio-1", title="Cells", tasks=tasks, submissions=submissions)


def _options(tmp_path: Path, **overrides: Any) -> dict[str, Any]:
    options = {
        "backend_url": "http://assessor.test",
        "api_key": "secret",
        "cache_dir": str(tmp_path / "cache"),
        "cache_scope": "assessment",
        "batch_size": 2,
    }
    options.update(overrides)
    return options


def test_end_to_end_grading_with_cache(tmp_path: Path) -> None:
    calls: list[dict[str, Any]] = []
    transport = httpx.ASGITransport(app=build_fake_backend(calls))

    assignment = _assignment()
    report = run_grading(assignment, _options(tmp_path), transport=transport)

    # s2 copied both templates; s1 and s3 share the same t1 answer.
    assert report.status == "completed"
    assert report.counts.total == 6
    assert report.counts.not_attempted == 2
    assert report.counts.dispatched == 4
    assert report.counts.graded == 4
    assert report.batches_sent == 2
    assert len(calls) == 4
    assert {call["taskType"] for call in calls} == {"TEXT", "TABLE"}

    s1 = assignment.find_submission("s1")
    assert s1 is not None
    assert s1.items["t1"].assessments["spag"] == {"score": 4.5, "reasoning": "clean"}
    s2 = assignment.find_submission("s2")
    assert s2 is not None
    assert s2.items["t2"].assessments["accuracy"]["score"] == "N"

    saved = save_assignment(assignment, tmp_path / "graded.json")
    assert load_assignment(saved).find_submission("s3").items["t2"].assessments["accuracy"]["score"] == 3

    rerun = run_grading(_assignment(), _options(tmp_path), transport=transport)
    assert rerun.counts.cache_hits == 4
    assert rerun.counts.dispatched == 0
    assert len(calls) == 4


def test_wrong_api_key_aborts_run(tmp_path: Path) -> None:
    calls: list[dict[str, Any]] = []
    transport = httpx.ASGITransport(app=build_fake_backend(calls))

    report = run_grading(
        _assignment(),
        _options(tmp_path, api_key="wrong", cache_scope="none"),
        transport=transport,
    )

    assert report.aborted
    assert report.batches_sent == 1
    assert report.counts.graded == 0
    assert report.counts.skipped_after_abort == 2
    assert calls == []
