import pytest

from persistence.hashing import fingerprint_content
from schemas.internal.artifacts import TaskArtifact
from schemas.internal.assignments import StudentSubmission, SubmissionItem, TaskDefinition
from schemas.internal.units import GradingUnit, unit_uid


def _unit(reference="ref", template="tmpl", response="resp") -> GradingUnit:
    return GradingUnit(
        uid="u1",
        task_id="t1",
        student_id="s1",
        task_type="text",
        reference_content=reference,
        template_content=template,
        response_content=response,
    )


def test_fingerprints_are_computed_from_full_content() -> None:
    unit = _unit()
    assert unit.task_type == "TEXT"
    assert unit.reference_fingerprint == fingerprint_content("ref")
    assert unit.template_fingerprint == fingerprint_content("tmpl")
    assert unit.response_fingerprint == fingerprint_content("resp")


def test_not_attempted_when_response_matches_template() -> None:
    assert _unit(template="same", response="same").not_attempted
    assert _unit(template="tmpl", response=None).not_attempted
    assert not _unit().not_attempted
    assert not _unit().graded


def test_from_submission_item_builds_uid() -> None:
    task = TaskDefinition(
        id="t1",
        title="Cells",
        page_id="p1",
        references=[TaskArtifact(task_id="t1", role="reference", content="answer")],
        templates=[TaskArtifact(task_id="t1", role="template", content="")],
    )
    item = SubmissionItem(
        task_id="t1",
        artifact=TaskArtifact(task_id="t1", role="submission", page_id="p1", content="mine"),
    )
    submission = StudentSubmission(student_id="s1", assignment_id="a1", items={"t1": item})
    unit = GradingUnit.from_submission_item(submission, item, task)
    assert unit.uid == unit_uid("s1", "t1", "p1")
    assert unit.uid.startswith("gu_")
    assert unit.reference_content == "answer"
    assert unit.template_content is None
    assert unit.response_content == "mine"


def test_from_submission_item_requires_reference_and_template() -> None:
    task = TaskDefinition(id="t1", title="Cells")
    item = SubmissionItem(task_id="t1", artifact=TaskArtifact(task_id="t1", role="submission", content="x"))
    submission = StudentSubmission(student_id="s1", assignment_id="a1", items={"t1": item})
    with pytest.raises(ValueError, match="missing a reference or template"):
        GradingUnit.from_submission_item(submission, item, task)
    assert task.validation_errors() == [
        "TaskDefinition missing reference artifact",
        "TaskDefinition missing template artifact",
    ]


def test_task_definition_derives_id() -> None:
    task = TaskDefinition(title="Cells", page_id="p1")
    assert task.id is not None and task.id.startswith("t_")
    assert len(task.id) == 14
    assert TaskDefinition(title="Cells", page_id="p1").id == task.id


def test_submission_touch_is_monotonic() -> None:
    submission = StudentSubmission(student_id="s1", assignment_id="a1")
    before = submission.updated_at
    submission.touch()
    submission.touch()
    assert submission.updated_at > before


def test_unit_uid_does_not_collide_across_id_boundaries() -> None:
    assert unit_uid("c", "a-b", "na") != unit_uid("b-c", "a", "na")
    assert unit_uid("s1", "t1", "p1") == unit_uid("s1", "t1", "p1")
    assert unit_uid("s1", "t1", "p1") != unit_uid("s1", "t1", "p2")
