"""Execution log recorder - persists lifecycle events as they are published."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Protocol, TYPE_CHECKING

from ..engine.types import ExecutionLogRecord, LifecycleEvent

if TYPE_CHECKING:
    from ..engine.event_publisher import EventPublisher, Subscription

logger = logging.getLogger(__name__)


class LogWriter(Protocol):
    async def add(self, record: ExecutionLogRecord) -> None: ...


def to_log_record(event: LifecycleEvent) -> ExecutionLogRecord:
    return ExecutionLogRecord(
        id=f"log_{uuid.uuid4().hex}",
        tenant_id=event.tenant_id,
        execution_id=event.execution_id,
        node_id=event.node_id,
        event_type=event.type.value,
        data=dict(event.data),
        created_at=event.timestamp,
    )


class ExecutionLogRecorder:
    """Background subscriber writing every lifecycle event to the log store."""

    def __init__(self, publisher: EventPublisher, store: LogWriter) -> None:
        self._publisher = publisher
        self._store = store
        self._subscription: Subscription | None = None
        self._task: asyncio.Task[None] | None = None

    async def record(self, event: LifecycleEvent) -> None:
        try:
            await self._store.add(to_log_record(event))
        except Exception:
            logger.exception("Failed to record %s for execution %s", event.type.value, event.execution_id)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        # Subscribe before the task runs so no early event is missed
        self._subscription = self._publisher.subscribe()
        self._task = asyncio.create_task(self._run(self._subscription), name="execution-log-recorder")

    async def drain(self) -> None:
        """Write every event already queued."""
        if self._subscription is None:
            return
        while not self._subscription.queue.empty():
            await self.record(self._subscription.queue.get_nowait())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        await self.drain()
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    async def _run(self, subscription: Subscription) -> None:
        async for event in subscription:
            await self.record(event)
