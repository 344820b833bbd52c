"""Deadline tracking for WAITING executions."""

from __future__ import annotations

import asyncio
import heapq
import logging
from datetime import datetime
from typing import Awaitable, Callable

from .types import utcnow

logger = logging.getLogger(__name__)

ExpireCallback = Callable[[str], Awaitable[bool]]


class TimeoutScheduler:
    """
    Min-heap of (expires_at, execution_id) polled on a fixed tick.

    Entries are removed lazily: `cancel` and `schedule` overwrite the live
    deadline and stale heap entries are skipped when popped.
    """

    def __init__(
        self,
        on_expire: ExpireCallback,
        tick_seconds: float = 1.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._on_expire = on_expire
        self._tick_seconds = tick_seconds
        self._clock = clock
        self._heap: list[tuple[datetime, str]] = []
        self._deadlines: dict[str, datetime] = {}
        self._task: asyncio.Task[None] | None = None
        self._inflight: dict[str, asyncio.Task[bool]] = {}

    def schedule(self, execution_id: str, expires_at: datetime) -> None:
        self._deadlines[execution_id] = expires_at
        heapq.heappush(self._heap, (expires_at, execution_id))

    def cancel(self, execution_id: str) -> None:
        self._deadlines.pop(execution_id, None)

    def rebuild(self, entries: list[tuple[str, datetime]]) -> None:
        """Replace the index, e.g. from persisted WAITING executions at startup."""
        self._deadlines = dict(entries)
        self._heap = [(expires_at, execution_id) for execution_id, expires_at in entries]
        heapq.heapify(self._heap)

    def deadline(self, execution_id: str) -> datetime | None:
        return self._deadlines.get(execution_id)

    def __len__(self) -> int:
        return len(self._deadlines)

    def pop_due(self, now: datetime | None = None) -> list[str]:
        """Remove and return ids whose deadline has passed."""
        now = now or self._clock()
        due: list[str] = []
        while self._heap and self._heap[0][0] <= now:
            expires_at, execution_id = heapq.heappop(self._heap)
            if self._deadlines.get(execution_id) != expires_at:
                continue
            del self._deadlines[execution_id]
            due.append(execution_id)
        return due

    async def tick(self, now: datetime | None = None) -> int:
        """
        Dispatch expiry for every due execution and return how many started.

        Each expiry runs as its own task so a slow continuation never delays
        the others. An id whose previous expiry is still in flight is retried
        on the next tick.
        """
        now = now or self._clock()
        started = 0
        for execution_id in self.pop_due(now):
            if execution_id in self._inflight:
                self.schedule(execution_id, now)
                continue
            task = asyncio.create_task(self._expire(execution_id), name=f"expire-{execution_id}")
            self._inflight[execution_id] = task
            task.add_done_callback(lambda _, eid=execution_id: self._inflight.pop(eid, None))
            started += 1
        return started

    async def join(self) -> None:
        """Wait for every in-flight expiry to finish."""
        while self._inflight:
            await asyncio.gather(*self._inflight.values(), return_exceptions=True)

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def _expire(self, execution_id: str) -> bool:
        try:
            return await self._on_expire(execution_id)
        except Exception:
            logger.exception("Error expiring execution %s", execution_id)
            return False

    async def _run(self) -> None:
        logger.info("Timeout scheduler started (tick=%ss)", self._tick_seconds)
        while True:
            await self.tick()
            await asyncio.sleep(self._tick_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="timeout-scheduler")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        pending = list(self._inflight.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Timeout scheduler stopped")
