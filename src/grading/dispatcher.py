"""Bounded batch dispatch of assessor requests."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Protocol, Sequence, TypeVar

from grading.client import RawResponse
from grading.context import RunContext
from grading.planner import DispatchRequest
from schemas.wire import AssessorRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 20


class AssessorTransport(Protocol):
    async def assess(self, request: AssessorRequest) -> RawResponse | None: ...


def partition_batches(items: Sequence[T], batch_size: int) -> list[list[T]]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [list(items[start : start + batch_size]) for start in range(0, len(items), batch_size)]


class BatchDispatcher:
    def __init__(
        self,
        client: AssessorTransport,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_parallel: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self._client = client
        self._batch_size = batch_size
        self._max_parallel = max_parallel

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def send_one(self, request: DispatchRequest, context: RunContext) -> RawResponse | None:
        context.backend_calls += 1
        return await self._client.assess(request.to_wire())

    async def send_batch(
        self, batch: Sequence[DispatchRequest], context: RunContext
    ) -> list[RawResponse | None]:
        """Send one batch and wait for all of it; results keep request order."""
        semaphore = asyncio.Semaphore(self._max_parallel)

        async def _bounded(request: DispatchRequest) -> RawResponse | None:
            async with semaphore:
                return await self.send_one(request, context)

        context.batches_sent += 1
        return list(await asyncio.gather(*(_bounded(request) for request in batch)))

    async def iter_batches(
        self, requests: Sequence[DispatchRequest], context: RunContext
    ) -> AsyncIterator[list[tuple[DispatchRequest, RawResponse | None]]]:
        batches = partition_batches(requests, self._batch_size)
        for index, batch in enumerate(batches, start=1):
            if context.aborted:
                logger.info("run aborted; %d batch(es) not sent", len(batches) - index + 1)
                return
            logger.info("sending batch %d/%d (%d requests)", index, len(batches), len(batch))
            responses = await self.send_batch(batch, context)
            yield list(zip(batch, responses))


__all__ = ["AssessorTransport", "BatchDispatcher", "DEFAULT_BATCH_SIZE", "partition_batches"]
