import pytest
from pydantic import ValidationError

from persistence.hashing import fingerprint_content
from schemas.internal.artifacts import TaskArtifact, canonicalise_formula, table_to_markdown


def test_text_content_is_normalised() -> None:
    artifact = TaskArtifact(task_id="t1", role="submission", content="  line one\r\nline two\r ")
    assert artifact.task_type == "TEXT"
    assert artifact.content == "line one\nline two"
    assert artifact.content_hash == fingerprint_content("line one\nline two")


def test_blank_text_becomes_empty() -> None:
    artifact = TaskArtifact(task_id="t1", role="template", content="   ")
    assert artifact.content is None
    assert artifact.is_empty()


def test_table_is_trimmed_and_rendered_as_markdown() -> None:
    artifact = TaskArtifact(
        task_id="t1",
        role="reference",
        type="table",
        content=[["Name", " Age ", ""], ["Ada", 36, None], ["", None, ""]],
    )
    assert artifact.task_type == "TABLE"
    assert artifact.content == "| Name | Age |\n| --- | --- |\n| Ada | 36 |"


def test_spreadsheet_formulas_are_canonicalised() -> None:
    artifact = TaskArtifact(
        task_id="t1",
        role="submission",
        task_type="SPREADSHEET",
        content=[['=sum(a1:a2)', '=if(a1>1,"yes","no")'], [1, 2]],
    )
    assert artifact.content == [["=SUM(A1:A2)", '=IF(A1>1,"yes","no")'], [1, 2]]


def test_spreadsheet_rejects_plain_strings() -> None:
    artifact = TaskArtifact(task_id="t1", role="submission", task_type="SPREADSHEET", content="=A1")
    assert artifact.content is None


def test_image_requires_string() -> None:
    artifact = TaskArtifact(task_id="t1", role="submission", task_type="IMAGE", content=[["x"]])
    assert artifact.content is None
    artifact = TaskArtifact(
        task_id="t1", role="submission", task_type="IMAGE", content=" data:image/png;base64,AAA "
    )
    assert artifact.content == "data:image/png;base64,AAA"


def test_unknown_task_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        TaskArtifact(task_id="t1", role="submission", task_type="AUDIO", content="x")


def test_default_uid_and_replace_content() -> None:
    artifact = TaskArtifact(task_id="t1", role="reference", page_id="p9", content="a")
    assert artifact.uid == "t1-0-reference-p9-0"
    artifact.replace_content("  b ")
    assert artifact.content == "b"
    assert artifact.content_hash == fingerprint_content("b")


def test_formula_helpers() -> None:
    assert canonicalise_formula('=concat("a",b1)') == '=CONCAT("a",B1)'
    assert table_to_markdown([]) == ""
