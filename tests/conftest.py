"""Shared fixtures: an in-memory engine wired to fake collaborators."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator

import pytest

from chatflow.core.config import Settings
from chatflow.engine.collaborators import Collaborators
from chatflow.engine.event_publisher import EventPublisher
from chatflow.engine.execution_engine import ExecutionEngine
from chatflow.engine.node_registry import register_all_nodes
from chatflow.engine.types import Workflow
from chatflow.services.contact_tags import ContactTagService
from chatflow.storage import ContactTagStore, ExecutionStore, WorkflowStore
from tests.helpers import EventCollector, FakeChannel, FakeClock, FakeSandbox


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        storage_backend="memory",
        loop_guard_max_steps=20,
        wait_reply_default_timeout_seconds=300,
        schedule_enabled=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def sandbox() -> FakeSandbox:
    return FakeSandbox()


@pytest.fixture
def tag_store() -> ContactTagStore:
    return ContactTagStore()


@pytest.fixture
def services(channel: FakeChannel, sandbox: FakeSandbox, tag_store: ContactTagStore) -> Collaborators:
    return Collaborators(
        channel=channel,
        tags=ContactTagService(tag_store, namespace="tags"),
        labels=ContactTagService(tag_store, namespace="labels"),
        sandbox=sandbox,
    )


@pytest.fixture
def workflow_store() -> WorkflowStore:
    return WorkflowStore()


@pytest.fixture
def execution_store() -> ExecutionStore:
    return ExecutionStore()


@pytest.fixture
def publisher() -> EventPublisher:
    return EventPublisher(max_queue_size=100)


@pytest.fixture
def engine(
    execution_store: ExecutionStore,
    workflow_store: WorkflowStore,
    publisher: EventPublisher,
    services: Collaborators,
    settings: Settings,
    clock: FakeClock,
) -> ExecutionEngine:
    return ExecutionEngine(
        execution_store,
        workflow_store,
        publisher,
        services=services,
        registry=register_all_nodes(),
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def save_workflow(workflow_store: WorkflowStore) -> Callable[[Workflow], Awaitable[Workflow]]:
    async def _save(workflow: Workflow) -> Workflow:
        await workflow_store.create(workflow)
        return workflow

    return _save


@pytest.fixture
def events(publisher: EventPublisher) -> Iterator[EventCollector]:
    """Lifecycle events published while the test runs."""
    subscription = publisher.subscribe()
    yield EventCollector(subscription)
    subscription.close()
