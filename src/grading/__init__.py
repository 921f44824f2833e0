"""Batched grading pipeline over a content-addressed assessment cache."""

from grading.client import AssessorClient, RawResponse
from grading.context import RunContext, RunLog
from grading.pipeline import GradingPipeline
from grading.writer import AssignmentSubmissionSink

__all__ = [
    "AssessorClient",
    "AssignmentSubmissionSink",
    "GradingPipeline",
    "RawResponse",
    "RunContext",
    "RunLog",
]
