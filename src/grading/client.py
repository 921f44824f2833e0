"""HTTP client for the remote grading backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from schemas.wire import ASSESSOR_PATH, AssessorRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    text: str


class AssessorClient:
    """Posts assessor requests; transport failures come back as ``None``."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AssessorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def assess(self, request: AssessorRequest) -> RawResponse | None:
        try:
            response = await self._client.post(ASSESSOR_PATH, json=request.to_wire())
        except httpx.HTTPError as exc:
            logger.warning("Assessor request failed: %s: %s", type(exc).__name__, exc)
            return None
        return RawResponse(status_code=response.status_code, text=response.text)


__all__ = ["AssessorClient", "RawResponse"]
