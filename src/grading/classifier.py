"""Classify raw backend responses into outcome variants."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Union

from pydantic import ValidationError

from grading.client import RawResponse
from grading.planner import DispatchRequest
from schemas.internal.assessments import AssessmentResult
from schemas.wire import AssessorResponse, lowercase_keys

_BODY_PREVIEW = 500


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport_error"
    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad_request"
    SCHEMA_INVALID = "schema_invalid"
    UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class Success:
    uid: str
    result: AssessmentResult
    status_code: int
    kind: OutcomeKind = OutcomeKind.SUCCESS


@dataclass(frozen=True)
class TransportError:
    uid: str
    kind: OutcomeKind = OutcomeKind.TRANSPORT_ERROR


@dataclass(frozen=True)
class Unauthorized:
    uid: str
    body: str
    status_code: int = 401
    kind: OutcomeKind = OutcomeKind.UNAUTHORIZED


@dataclass(frozen=True)
class BadRequest:
    uid: str
    body: str
    status_code: int = 400
    kind: OutcomeKind = OutcomeKind.BAD_REQUEST


@dataclass(frozen=True)
class SchemaInvalid:
    uid: str
    body: str
    error: str
    status_code: int
    kind: OutcomeKind = OutcomeKind.SCHEMA_INVALID


@dataclass(frozen=True)
class UnknownError:
    uid: str
    body: str
    status_code: int
    kind: OutcomeKind = OutcomeKind.UNKNOWN_ERROR


Outcome = Union[Success, TransportError, Unauthorized, BadRequest, SchemaInvalid, UnknownError]


def classify(request: DispatchRequest, raw: RawResponse | None) -> Outcome:
    if raw is None:
        return TransportError(uid=request.uid)
    status = raw.status_code
    body = raw.text[:_BODY_PREVIEW]
    if status == 401:
        return Unauthorized(uid=request.uid, body=body)
    if status == 400:
        return BadRequest(uid=request.uid, body=body)
    if status in (200, 201):
        try:
            payload = json.loads(raw.text)
        except json.JSONDecodeError as exc:
            return SchemaInvalid(uid=request.uid, body=body, error=f"invalid JSON: {exc}", status_code=status)
        try:
            parsed = AssessorResponse.model_validate(lowercase_keys(payload))
        except ValidationError as exc:
            return SchemaInvalid(
                uid=request.uid,
                body=body,
                error=f"{exc.error_count()} validation error(s)",
                status_code=status,
            )
        return Success(uid=request.uid, result=parsed.to_assessment(), status_code=status)
    return UnknownError(uid=request.uid, body=body, status_code=status)


__all__ = [
    "BadRequest",
    "Outcome",
    "OutcomeKind",
    "SchemaInvalid",
    "Success",
    "TransportError",
    "Unauthorized",
    "UnknownError",
    "classify",
]
