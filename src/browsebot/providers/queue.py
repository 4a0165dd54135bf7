"""FIFO request queue enforcing a minimum spacing between provider calls."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class _QueuedTask:
    task: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]


class RequestQueue:
    """Runs submitted tasks one at a time, in order, at most one per ``min_interval``.

    The interval is measured from when the previous task *finished*. A single
    drain loop serves every caller; tasks enqueued while it runs are picked up
    by the same loop. A failing task rejects only its own caller.
    """

    def __init__(
        self,
        min_interval_seconds: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = "provider",
    ) -> None:
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._pending: deque[_QueuedTask] = deque()
        self._draining = False
        self._drain_task: asyncio.Task[None] | None = None
        self._last_finished_at: float | None = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def enqueue(self, task: Callable[[], Awaitable[T]]) -> T:
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._pending.append(_QueuedTask(task=task, future=future))
        if not self._draining:
            self._draining = True
            self._drain_task = asyncio.create_task(self._drain())
        return await future

    def _wait_seconds(self) -> float:
        if self._last_finished_at is None:
            return 0.0
        elapsed = self._clock() - self._last_finished_at
        return max(0.0, self.min_interval_seconds - elapsed)

    async def _drain(self) -> None:
        try:
            while self._pending:
                wait = self._wait_seconds()
                if wait > 0:
                    await self._sleep(wait)
                item = self._pending.popleft()
                if item.future.cancelled():
                    continue
                try:
                    result = await item.task()
                except Exception as exc:
                    self._last_finished_at = self._clock()
                    logger.debug("%s request failed: %s", self.name, exc)
                    if not item.future.done():
                        item.future.set_exception(exc)
                else:
                    self._last_finished_at = self._clock()
                    logger.debug("%s request completed", self.name)
                    if not item.future.done():
                        item.future.set_result(result)
        finally:
            self._draining = False


_SHARED_QUEUES: dict[str, RequestQueue] = {}


def shared_queue(name: str, min_interval_seconds: float) -> RequestQueue:
    """Process-wide queue for ``name``; the first caller fixes its interval."""
    queue = _SHARED_QUEUES.get(name)
    if queue is None:
        queue = RequestQueue(min_interval_seconds, name=name)
        _SHARED_QUEUES[name] = queue
    return queue


def reset_shared_queues() -> None:
    _SHARED_QUEUES.clear()
