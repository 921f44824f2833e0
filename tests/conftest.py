# tests/conftest.py
from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from core.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    # Keep tests independent of a developer .env and of each other.
    monkeypatch.chdir(tmp_path)
    for name in (
        "ASSESSOR_BACKEND_URL",
        "ASSESSOR_API_KEY",
        "ASSESSOR_BATCH_SIZE",
        "ASSESSOR_MAX_PARALLEL",
        "ASSESSOR_MAX_VALIDATION_RETRIES",
        "ASSESSOR_SKIP_TASK_TYPES",
        "CACHE_DIR",
        "CACHE_SCOPE",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def assessment_body(score: Any = 4, reasoning: str = "ok") -> dict[str, Any]:
    return {
        "completeness": {"score": score, "reasoning": reasoning},
        "accuracy": {"score": score, "reasoning": reasoning},
        "spag": {"score": score, "reasoning": reasoning},
    }


class RecordingBackend:
    """httpx.MockTransport handler that records requests and replays responses."""

    def __init__(self, responder: Callable[[dict[str, Any], int], httpx.Response] | None = None) -> None:
        self.requests: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self._responder = responder or (lambda payload, n: httpx.Response(200, json=assessment_body()))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        self.headers.append(request.headers)
        return self._responder(payload, len(self.requests))

    @property
    def calls(self) -> int:
        return len(self.requests)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def backend_factory():
    return RecordingBackend


@pytest.fixture
def make_body():
    return assessment_body
