"""Conversation service - the inbound entry point of the engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, TYPE_CHECKING

from ..core.exceptions import WorkflowEngineError
from ..engine.trigger_matcher import TriggerMatcher, trigger_matcher
from ..engine.types import ExecutionStatus, InboundEvent

if TYPE_CHECKING:
    from ..engine.collaborators import ExecutionStore, WorkflowStore
    from ..engine.execution_engine import ExecutionEngine

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """What happened to one inbound event."""

    action: Literal["resumed", "started", "ignored"]
    execution_ids: list[str] = field(default_factory=list)


class ConversationService:
    """
    Routes inbound events to the engine.

    A message from a contact that has a WAITING execution resumes it. A contact
    with an execution still RUNNING is ignored. Otherwise the message is matched
    against the tenant's active triggers and every matching workflow starts one
    execution.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        execution_store: ExecutionStore,
        workflow_store: WorkflowStore,
        matcher: TriggerMatcher | None = None,
    ) -> None:
        self._engine = engine
        self._executions = execution_store
        self._workflows = workflow_store
        self._matcher = matcher or trigger_matcher

    async def handle_message(self, event: InboundEvent) -> DispatchResult:
        active = await self._executions.find_active(event.tenant_id, event.session_id, event.contact_id)
        if active:
            latest = active[-1]
            if latest.status == ExecutionStatus.WAITING and await self._engine.resume(latest.id, event):
                return DispatchResult(action="resumed", execution_ids=[latest.id])
            logger.debug(
                "Message from %s ignored: execution %s is %s",
                event.contact_id,
                latest.id,
                latest.status.value,
            )
            return DispatchResult(action="ignored")

        return await self._start_matching(event)

    async def handle_signal(self, event: InboundEvent) -> DispatchResult:
        """Start executions for a schedule or manual signal."""
        return await self._start_matching(event)

    async def _start_matching(self, event: InboundEvent) -> DispatchResult:
        workflows = await self._workflows.list_active(event.tenant_id)
        started: list[str] = []
        for match in self._matcher.match(event, workflows):
            try:
                execution = await self._engine.start(match.workflow, match.trigger_node, event)
            except WorkflowEngineError as e:
                logger.warning("Could not start workflow %s: %s", match.workflow.id, e.message)
                continue
            started.append(execution.id)

        if not started:
            return DispatchResult(action="ignored")
        return DispatchResult(action="started", execution_ids=started)
