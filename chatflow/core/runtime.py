"""Application runtime - wires stores, engine, background workers and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine

from .config import Settings

if TYPE_CHECKING:
    from ..engine.collaborators import Collaborators
    from ..engine.event_publisher import EventPublisher
    from ..engine.execution_engine import ExecutionEngine
    from ..engine.node_registry import NodeRegistryClass
    from ..engine.schedule_runner import ScheduleRunner
    from ..services.conversation_service import ConversationService
    from ..services.execution_log_service import ExecutionLogRecorder

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Long-lived objects shared by the routes and background workers."""

    settings: Settings
    workflow_store: Any
    execution_store: Any
    log_store: Any
    tag_store: Any
    publisher: EventPublisher
    engine: ExecutionEngine
    conversations: ConversationService
    schedule_runner: ScheduleRunner
    log_recorder: ExecutionLogRecorder
    registry: NodeRegistryClass
    db_engine: AsyncEngine | None = None
    closeables: tuple[Any, ...] = ()

    async def startup(self) -> None:
        """Create tables, restore deadlines and start the background workers."""
        if self.db_engine is not None:
            from ..db import init_db

            await init_db(self.db_engine)
            logger.info("Database initialized")

        self.log_recorder.start()
        await self.engine.restore_timeouts()
        self.engine.timeout_scheduler.start()
        if self.settings.schedule_enabled:
            self.schedule_runner.start()

    async def shutdown(self) -> None:
        await self.schedule_runner.stop()
        await self.engine.timeout_scheduler.stop()
        await self.log_recorder.stop()
        for closeable in self.closeables:
            await closeable.close()
        if self.db_engine is not None:
            await self.db_engine.dispose()


def build_runtime(settings: Settings, services: Collaborators | None = None) -> Runtime:
    """
    Build a runtime for `settings.storage_backend`.

    `services` overrides the default collaborators (channel gateway, tag and
    label services, media resolver, code sandbox and, when
    `settings.browser_enabled`, the headless browser).
    """
    from ..engine.collaborators import Collaborators
    from ..engine.event_publisher import EventPublisher
    from ..engine.execution_engine import ExecutionEngine
    from ..engine.node_registry import register_all_nodes
    from ..engine.schedule_runner import ScheduleRunner
    from ..integrations.browser import PlaywrightBrowserDriver
    from ..integrations.channel import HttpChannelAdapter
    from ..integrations.media import HttpMediaResolver
    from ..integrations.sandbox import RestrictedPythonSandbox
    from ..services.contact_tags import ContactTagService
    from ..services.conversation_service import ConversationService
    from ..services.execution_log_service import ExecutionLogRecorder

    db_engine = None
    if settings.storage_backend == "memory":
        from ..storage import ContactTagStore, ExecutionLogStore, ExecutionStore, WorkflowStore

        workflow_store: Any = WorkflowStore()
        execution_store: Any = ExecutionStore()
        log_store: Any = ExecutionLogStore()
        tag_store: Any = ContactTagStore()
    else:
        from ..db import create_session_factory
        from ..repositories import (
            ContactTagRepository,
            ExecutionLogRepository,
            ExecutionRepository,
            WorkflowRepository,
        )

        db_engine, session_factory = create_session_factory(settings.database_url, echo=settings.debug)
        workflow_store = WorkflowRepository(session_factory)
        execution_store = ExecutionRepository(session_factory)
        log_store = ExecutionLogRepository(session_factory)
        tag_store = ContactTagRepository(session_factory)

    closeables: list[Any] = []
    if services is None:
        services = Collaborators(
            tags=ContactTagService(tag_store, namespace="tags"),
            labels=ContactTagService(tag_store, namespace="labels"),
            sandbox=RestrictedPythonSandbox(
                timeout_seconds=settings.code_timeout_seconds,
                cpu_seconds=settings.code_cpu_seconds,
                memory_mb=settings.code_memory_limit_mb,
            ),
        )
        services.media = HttpMediaResolver()
        closeables.append(services.media)
        if settings.channel_gateway_url:
            services.channel = HttpChannelAdapter(
                settings.channel_gateway_url,
                token=settings.channel_gateway_token,
            )
            closeables.append(services.channel)
        else:
            logger.warning("No channel gateway configured; send nodes will fail")
        if settings.browser_enabled:
            services.browser = PlaywrightBrowserDriver(headless=settings.browser_headless)
            closeables.append(services.browser)

    registry = register_all_nodes()
    publisher = EventPublisher(max_queue_size=settings.event_queue_size)
    engine = ExecutionEngine(
        execution_store,
        workflow_store,
        publisher,
        services=services,
        registry=registry,
        settings=settings,
    )
    conversations = ConversationService(engine, execution_store, workflow_store)
    schedule_runner = ScheduleRunner(
        workflow_store,
        conversations.handle_signal,
        tick_seconds=settings.schedule_tick_seconds,
        default_session_id=settings.default_session_id,
    )

    return Runtime(
        settings=settings,
        workflow_store=workflow_store,
        execution_store=execution_store,
        log_store=log_store,
        tag_store=tag_store,
        publisher=publisher,
        engine=engine,
        conversations=conversations,
        schedule_runner=schedule_runner,
        log_recorder=ExecutionLogRecorder(publisher, log_store),
        registry=registry,
        db_engine=db_engine,
        closeables=tuple(closeables),
    )
