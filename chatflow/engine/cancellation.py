"""Cancellation tokens for in-flight executions."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from ..core.exceptions import ExecutionCancelledError

T = TypeVar("T")


class CancelToken:
    """
    Signals cancellation to a running execution.

    External calls are wrapped with `guard()` so a cancel aborts them
    instead of waiting for their own timeout.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExecutionCancelledError(self.reason or "cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, aborting it if the token fires first."""
        self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise ExecutionCancelledError(self.reason or "cancelled")
