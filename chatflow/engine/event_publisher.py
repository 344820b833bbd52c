"""In-process pub/sub for execution lifecycle events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .types import LifecycleEvent

logger = logging.getLogger(__name__)


class Subscription:
    """A bounded queue of events for one subscriber."""

    def __init__(self, publisher: EventPublisher, max_size: int, tenant_id: str | None) -> None:
        self._publisher = publisher
        self.queue: asyncio.Queue[LifecycleEvent] = asyncio.Queue(maxsize=max_size)
        self.tenant_id = tenant_id

    def accepts(self, event: LifecycleEvent) -> bool:
        return self.tenant_id is None or self.tenant_id == event.tenant_id

    async def get(self) -> LifecycleEvent:
        return await self.queue.get()

    def __aiter__(self) -> AsyncIterator[LifecycleEvent]:
        return self

    async def __anext__(self) -> LifecycleEvent:
        return await self.queue.get()

    def close(self) -> None:
        self._publisher.unsubscribe(self)


class EventPublisher:
    """
    Fire-and-forget broadcaster.

    `publish` never blocks and never raises: a subscriber whose queue is full
    loses the event and a warning is logged.
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        self._max_queue_size = max_queue_size
        self._subscriptions: list[Subscription] = []

    def publish(self, event: LifecycleEvent) -> None:
        logger.debug("Publishing %s for execution %s", event.type.value, event.execution_id)
        for subscription in list(self._subscriptions):
            if not subscription.accepts(event):
                continue
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping %s for execution %s: subscriber queue full",
                    event.type.value,
                    event.execution_id,
                )

    def subscribe(self, tenant_id: str | None = None) -> Subscription:
        subscription = Subscription(self, self._max_queue_size, tenant_id)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @asynccontextmanager
    async def subscription(self, tenant_id: str | None = None) -> AsyncIterator[Subscription]:
        subscription = self.subscribe(tenant_id)
        try:
            yield subscription
        finally:
            self.unsubscribe(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
