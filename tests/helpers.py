"""Fake collaborators and workflow builders shared by the test modules."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from chatflow.engine.event_publisher import Subscription
from chatflow.engine.types import (
    EventType,
    InboundEvent,
    LifecycleEvent,
    Workflow,
    WorkflowEdge,
    WorkflowNode,
)

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
TENANT = "tenant-1"
SESSION = "session-1"
CONTACT = "5511999990000"


# --- Fakes ---


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeChannel:
    """Records every payload; raises `error` instead when set."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.error: Exception | None = None

    async def send(self, session_id: str, contact_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.sent.append((session_id, contact_id, payload))
        return {"messageId": f"msg-{len(self.sent)}"}

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [payload for _, _, payload in self.sent]

    @property
    def texts(self) -> list[str | None]:
        return [payload.get("text") for payload in self.payloads]


class FakeSandbox:
    """Runs a Python callable in place of the script."""

    def __init__(self, handler: Callable[[str, dict[str, Any]], Any] | None = None) -> None:
        self.handler = handler or (lambda script, data: None)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def run(self, script: str, input: dict[str, Any], limits: dict[str, Any]) -> Any:
        self.calls.append((script, input))
        return self.handler(script, input)


class BlockingSandbox:
    """Never finishes; `started` is set once a script is running."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def run(self, script: str, input: dict[str, Any], limits: dict[str, Any]) -> Any:
        self.started.set()
        await asyncio.Event().wait()


class FakeMediaResolver:
    def __init__(self, data: bytes = b"\x89PNG") -> None:
        self.data = data
        self.references: list[str] = []

    async def resolve(self, reference: str) -> bytes:
        self.references.append(reference)
        return self.data


class FakePage:
    def __init__(self, url: str) -> None:
        self.url = url
        self.closed = False

    async def evaluate(self, script: str) -> Any:
        return {"script": script}

    async def content(self) -> str:
        return "<html><h1>Price</h1></html>"

    async def title(self) -> str:
        return "Product page"

    async def screenshot(self) -> bytes:
        return b"png-bytes"

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.pages: list[FakePage] = []
        self.wait_specs: list[dict[str, Any]] = []

    async def navigate(self, url: str, wait_spec: dict[str, Any]) -> FakePage:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.wait_specs.append(wait_spec)
        page = FakePage(url)
        self.pages.append(page)
        return page

    async def extract(self, page: FakePage, selector: str, extract_type: str, attribute: str | None = None) -> Any:
        return f"{extract_type}:{selector}"


class EventCollector:
    """Buffers everything a subscription received so far."""

    def __init__(self, subscription: Subscription) -> None:
        self.subscription = subscription
        self.received: list[LifecycleEvent] = []

    def drain(self) -> list[LifecycleEvent]:
        while not self.subscription.queue.empty():
            self.received.append(self.subscription.queue.get_nowait())
        return self.received

    @property
    def types(self) -> list[str]:
        return [e.type.value for e in self.drain()]

    def of_type(self, event_type: EventType) -> list[LifecycleEvent]:
        return [e for e in self.drain() if e.type == event_type]


# --- Builders ---


def node(node_id: str, node_type: str, **config: Any) -> WorkflowNode:
    return WorkflowNode(id=node_id, type=node_type, config=config)


def edge(source: str, target: str, label: str | None = None) -> WorkflowEdge:
    return WorkflowEdge(id=f"{source}->{target}:{label or ''}", source=source, target=target, label=label)


def chain(*node_ids: str) -> list[WorkflowEdge]:
    """Unlabelled edges linking the ids in order."""
    return [edge(a, b) for a, b in zip(node_ids, node_ids[1:])]


def make_workflow(
    nodes: list[WorkflowNode],
    edges: list[WorkflowEdge],
    workflow_id: str = "wf-1",
    tenant_id: str = TENANT,
    active: bool = True,
) -> Workflow:
    return Workflow(
        id=workflow_id,
        tenant_id=tenant_id,
        name=f"Workflow {workflow_id}",
        nodes=nodes,
        edges=edges,
        is_active=active,
        created_at=T0,
        updated_at=T0,
    )


def message(
    text: str,
    contact_id: str = CONTACT,
    session_id: str = SESSION,
    tenant_id: str = TENANT,
) -> InboundEvent:
    return InboundEvent(
        kind="message",
        tenant_id=tenant_id,
        session_id=session_id,
        contact_id=contact_id,
        text=text,
        timestamp=T0,
    )
