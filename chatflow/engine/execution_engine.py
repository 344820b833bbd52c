"""
Execution engine - durable state machine over a workflow graph.

An execution advances node by node until a node suspends it (WAITING), ends
it (COMPLETED) or fails it (ERROR). `resume`, `expire` and `cancel` move a
WAITING execution on. All operations on one execution id are serialized by a
per-id lock, and leaving WAITING is a compare-and-set on the stored status so
only one concurrent caller can win.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
import weakref
from datetime import datetime, timedelta
from typing import Any, Callable, TYPE_CHECKING

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    ExecutionCancelledError,
    LoopGuardError,
    NoMatchingEdgeError,
    NodeExecutionError,
    WorkflowEngineError,
)
from .cancellation import CancelToken
from .collaborators import Collaborators
from .expression_engine import ExpressionEngine, expression_engine
from .timeout_scheduler import TimeoutScheduler
from .types import (
    EventType,
    ExecutionContext,
    ExecutionStatus,
    InboundEvent,
    LifecycleEvent,
    NodeContext,
    NodeOutcome,
    NodeType,
    Workflow,
    WorkflowExecution,
    WorkflowNode,
    utcnow,
)

if TYPE_CHECKING:
    from .collaborators import ExecutionStore, WorkflowStore
    from .event_publisher import EventPublisher
    from .node_registry import NodeRegistryClass

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Drives workflow executions and owns their state transitions."""

    def __init__(
        self,
        execution_store: ExecutionStore,
        workflow_store: WorkflowStore,
        publisher: EventPublisher,
        services: Collaborators | None = None,
        registry: NodeRegistryClass | None = None,
        evaluator: ExpressionEngine | None = None,
        timeout_scheduler: TimeoutScheduler | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if registry is None:
            from .node_registry import register_all_nodes

            registry = register_all_nodes()

        self._executions = execution_store
        self._workflows = workflow_store
        self._publisher = publisher
        self._services = services or Collaborators()
        self._registry = registry
        self._evaluator = evaluator or expression_engine
        self._settings = settings or default_settings
        self._clock = clock
        self.timeout_scheduler = timeout_scheduler or TimeoutScheduler(
            self.expire,
            tick_seconds=self._settings.timeout_tick_seconds,
            clock=clock,
        )

        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._tokens: dict[str, CancelToken] = {}

    @property
    def services(self) -> Collaborators:
        return self._services

    # --- Public operations ---

    async def start(
        self,
        workflow: Workflow,
        trigger_node: WorkflowNode,
        event: InboundEvent,
    ) -> WorkflowExecution:
        """Create an execution at the trigger's successor and advance it."""
        now = self._clock()
        execution_id = self._generate_id()
        context = ExecutionContext(
            globals={
                "workflowId": workflow.id,
                "workflowName": workflow.name,
                "tenantId": workflow.tenant_id,
                "executionId": execution_id,
                "sessionId": event.session_id,
                "contactId": event.contact_id,
            },
            input=event.to_input(),
            output={},
            variables={"triggerMessage": event.text or ""},
        )
        execution = WorkflowExecution(
            id=execution_id,
            tenant_id=workflow.tenant_id,
            workflow_id=workflow.id,
            session_id=event.session_id,
            contact_id=event.contact_id,
            current_node_id=trigger_node.id,
            status=ExecutionStatus.RUNNING,
            context=context,
            started_at=now,
            updated_at=now,
        )

        lock = self._lock_for(execution_id)
        async with lock:
            await self._executions.create(execution)
            logger.info(
                "Execution %s started for workflow %s (contact %s)",
                execution_id,
                workflow.id,
                event.contact_id,
            )
            self._emit(EventType.EXECUTION_STARTED, execution)
            await self._continue_from(workflow, execution, trigger_node)

        return execution.copy()

    async def advance(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Advance a RUNNING execution from its current node."""
        async with self._lock_for(execution.id):
            current = await self._executions.get(execution.id)
            if current is None or current.status != ExecutionStatus.RUNNING:
                logger.debug("Advance skipped for %s: not running", execution.id)
                return current or execution
            workflow = await self._workflows.get(current.workflow_id)
            if workflow is None:
                await self._fail(current, f"Workflow not found: {current.workflow_id}")
                return current
            await self._run(workflow, current)
            return current.copy()

    async def resume(self, execution_id: str, reply: InboundEvent) -> bool:
        """
        Continue a WAITING execution with the contact's reply.

        Returns False (and changes nothing) when the execution is not WAITING,
        the reply belongs to another session/contact, or the waiting node does
        not accept replies. A reply at or after the deadline is handled as an
        expiry.
        """
        async with self._lock_for(execution_id):
            execution = await self._executions.get(execution_id)
            if execution is None or execution.status != ExecutionStatus.WAITING:
                logger.debug("Resume ignored for %s: not waiting", execution_id)
                return False
            if reply.session_id != execution.session_id or reply.contact_id != execution.contact_id:
                logger.debug("Resume ignored for %s: reply from another conversation", execution_id)
                return False

            now = self._clock()
            if execution.expires_at is not None and now >= execution.expires_at:
                return await self._handle_expiry(execution)

            workflow = await self._workflows.get(execution.workflow_id)
            node = workflow.get_node(execution.current_node_id) if workflow else None
            if workflow is None or node is None:
                return await self._handle_expiry(execution)

            if node.type == NodeType.WAIT.value and not node.config.get("resumeOnMessage"):
                logger.debug("Resume ignored for %s: WAIT node does not accept replies", execution_id)
                return False

            if not await self._claim(execution, ExecutionStatus.RUNNING):
                return False

            save_as = node.config.get("saveAs")
            if save_as:
                execution.context.variables[save_as] = reply.text
            execution.interaction_count += 1
            execution.expires_at = None
            execution.updated_at = now
            self._emit(EventType.EXECUTION_RESUMED, execution, previousStatus=ExecutionStatus.WAITING.value)
            logger.info("Execution %s resumed at node %s", execution_id, node.id)

            await self._continue_from(workflow, execution, node)
            return True

    async def expire(self, execution_id: str) -> bool:
        """
        Apply a WAITING execution's deadline.

        A WAIT node continues along its edge, WAIT_REPLY with GOTO_NODE jumps to
        its target, anything else becomes EXPIRED. No-op before the deadline or
        when the execution is missing or no longer WAITING.
        """
        async with self._lock_for(execution_id):
            execution = await self._executions.get(execution_id)
            if execution is None:
                logger.debug("Expire skipped for %s: not found", execution_id)
                return False
            if execution.status != ExecutionStatus.WAITING:
                logger.debug("Expire skipped for %s: status %s", execution_id, execution.status.value)
                return False
            if execution.expires_at is not None and self._clock() < execution.expires_at:
                return False
            return await self._handle_expiry(execution)

    async def cancel(self, execution_id: str, reason: str) -> bool:
        """
        Cancel a RUNNING or WAITING execution.

        A running execution is signalled through its cancel token and fails at
        its next await point; a waiting one is moved to ERROR directly.
        """
        token = self._tokens.get(execution_id)
        if token is not None:
            token.cancel(reason)
            logger.info("Cancellation requested for running execution %s: %s", execution_id, reason)
            return True

        async with self._lock_for(execution_id):
            execution = await self._executions.get(execution_id)
            if execution is None or execution.is_terminal:
                return False
            if execution.status == ExecutionStatus.RUNNING:
                token = self._tokens.get(execution_id)
                if token is not None:
                    token.cancel(reason)
                    return True
            if not await self._claim(execution, ExecutionStatus.ERROR, expected=execution.status):
                return False
            await self._finish_error(execution, ExecutionCancelledError(reason).message)
            return True

    async def cancel_workflow(self, workflow_id: str, reason: str) -> int:
        """Cancel every active execution of a workflow."""
        cancelled = 0
        for execution in await self._executions.list_active_for_workflow(workflow_id):
            if await self.cancel(execution.id, reason):
                cancelled += 1
        if cancelled:
            logger.info("Cancelled %d execution(s) of workflow %s: %s", cancelled, workflow_id, reason)
        return cancelled

    async def restore_timeouts(self) -> int:
        """Rebuild the timeout index from persisted WAITING executions."""
        waiting = await self._executions.list_waiting()
        self.timeout_scheduler.rebuild(
            [(e.id, e.expires_at) for e in waiting if e.expires_at is not None]
        )
        logger.info("Restored %d waiting execution deadline(s)", len(self.timeout_scheduler))
        return len(self.timeout_scheduler)

    # --- State machine ---

    async def _run(self, workflow: Workflow, execution: WorkflowExecution) -> None:
        """Execute nodes until the execution suspends, terminates or fails."""
        token = self._tokens.setdefault(execution.id, CancelToken())
        limit = self._settings.loop_guard_max_steps
        steps = 0
        node: WorkflowNode | None = None

        try:
            while True:
                token.raise_if_cancelled()

                node = workflow.get_node(execution.current_node_id)
                if node is None:
                    raise NodeExecutionError(
                        f"Node not found: {execution.current_node_id}",
                        node_id=execution.current_node_id,
                    )

                steps += 1
                if execution.interaction_count + steps > limit:
                    raise LoopGuardError(limit)

                executor = self._registry.get(node.type)
                node_context = NodeContext(
                    execution=execution,
                    workflow=workflow,
                    services=self._services,
                    evaluator=self._evaluator,
                    cancel_token=token,
                    settings=self._settings,
                )

                started = time.perf_counter()
                outcome = await executor.run(node_context, node)
                self._emit(
                    EventType.NODE_EXECUTED,
                    execution,
                    nodeId=node.id,
                    nodeType=node.type,
                    duration=int((time.perf_counter() - started) * 1000),
                )

                if outcome.kind == "suspend":
                    await self._suspend(execution, node, outcome)
                    # a cancel may have landed while WAITING was being saved
                    if token.cancelled and await self._claim(execution, ExecutionStatus.ERROR):
                        await self._finish_error(execution, ExecutionCancelledError(token.reason or "cancelled").message)
                    return

                if outcome.kind == "terminate":
                    await self._complete(execution, outcome.output or {})
                    return

                next_id = self._resolve_next(workflow, node, outcome, executor.branching)
                if next_id is None:
                    await self._complete(execution, dict(execution.context.variables))
                    return

                execution.current_node_id = next_id
                execution.updated_at = self._clock()
                await self._executions.save(execution)

        except ExecutionCancelledError as e:
            if await self._executions.get(execution.id) is None:
                logger.info("Execution %s was deleted while cancelling", execution.id)
                return
            await self._fail(execution, e.message)
        except WorkflowEngineError as e:
            logger.warning(
                "Execution %s failed at node %s: %s",
                execution.id,
                node.id if node else None,
                e.message,
            )
            await self._fail(execution, e.message)
        except Exception as e:
            logger.exception("Unexpected error in execution %s", execution.id)
            await self._fail(execution, str(e) or e.__class__.__name__)
        finally:
            self._tokens.pop(execution.id, None)

    async def _continue_from(
        self,
        workflow: Workflow,
        execution: WorkflowExecution,
        node: WorkflowNode,
    ) -> None:
        """Follow a non-branching node's outgoing edge, then keep running."""
        next_id = self._resolve_next(workflow, node, NodeOutcome.next(), branching=False)
        if next_id is None:
            await self._complete(execution, dict(execution.context.variables))
            return

        execution.current_node_id = next_id
        execution.updated_at = self._clock()
        await self._executions.save(execution)
        await self._run(workflow, execution)

    def _resolve_next(
        self,
        workflow: Workflow,
        node: WorkflowNode,
        outcome: NodeOutcome,
        branching: bool,
    ) -> str | None:
        """Pick the next node id; None means the graph ends here."""
        edges = workflow.outgoing_edges(node.id)

        if not branching:
            return edges[0].target if edges else None

        key = outcome.branch_key
        matches = [e for e in edges if key is not None and key in (e.label, e.condition)]
        if not matches:
            raise NoMatchingEdgeError(node.id, key)
        if len(matches) > 1:
            raise NoMatchingEdgeError(node.id, key, ambiguous=True)
        return matches[0].target

    async def _suspend(self, execution: WorkflowExecution, node: WorkflowNode, outcome: NodeOutcome) -> None:
        now = self._clock()
        timeout = float(outcome.timeout_seconds or 0)
        execution.status = ExecutionStatus.WAITING
        execution.current_node_id = node.id
        execution.expires_at = now + timedelta(seconds=timeout)
        execution.updated_at = now
        await self._executions.save(execution)

        self.timeout_scheduler.schedule(execution.id, execution.expires_at)
        self._emit(
            EventType.EXECUTION_WAITING,
            execution,
            currentNodeId=node.id,
            timeoutSeconds=timeout,
        )
        logger.info("Execution %s waiting at node %s for %ss", execution.id, node.id, timeout)

    async def _complete(self, execution: WorkflowExecution, output: dict[str, Any]) -> None:
        now = self._clock()
        execution.context.output["final"] = output
        execution.status = ExecutionStatus.COMPLETED
        execution.current_node_id = None
        execution.expires_at = None
        execution.completed_at = now
        execution.updated_at = now
        await self._executions.save(execution)

        self._emit(EventType.EXECUTION_COMPLETED, execution, output=output)
        logger.info("Execution %s completed", execution.id)

    async def _fail(self, execution: WorkflowExecution, message: str) -> None:
        execution.status = ExecutionStatus.ERROR
        await self._finish_error(execution, message)

    async def _finish_error(self, execution: WorkflowExecution, message: str) -> None:
        now = self._clock()
        self.timeout_scheduler.cancel(execution.id)
        execution.status = ExecutionStatus.ERROR
        execution.error = message
        execution.expires_at = None
        execution.completed_at = now
        execution.updated_at = now
        await self._executions.save(execution)

        self._emit(
            EventType.EXECUTION_ERROR,
            execution,
            error=message,
            currentNodeId=execution.current_node_id,
        )
        logger.info("Execution %s failed: %s", execution.id, message)

    async def _handle_expiry(self, execution: WorkflowExecution) -> bool:
        """Deadline transition for a WAITING execution (caller holds the lock)."""
        workflow = await self._workflows.get(execution.workflow_id)
        node = workflow.get_node(execution.current_node_id) if workflow else None

        if workflow is not None and node is not None:
            if node.type == NodeType.WAIT.value:
                if not await self._claim(execution, ExecutionStatus.RUNNING):
                    return False
                self._prepare_continue(execution)
                logger.info("Execution %s continuing after wait at node %s", execution.id, node.id)
                await self._continue_from(workflow, execution, node)
                return True

            target_id = node.config.get("timeoutTargetNodeId")
            if (
                node.type == NodeType.WAIT_REPLY.value
                and node.config.get("onTimeout") == "GOTO_NODE"
                and workflow.get_node(target_id) is not None
            ):
                if not await self._claim(execution, ExecutionStatus.RUNNING):
                    return False
                self._prepare_continue(execution)
                execution.current_node_id = target_id
                await self._executions.save(execution)
                logger.info("Execution %s timed out, jumping to node %s", execution.id, target_id)
                await self._run(workflow, execution)
                return True
        else:
            logger.warning(
                "Expiring execution %s: workflow or node %s no longer exists",
                execution.id,
                execution.current_node_id,
            )

        if not await self._claim(execution, ExecutionStatus.EXPIRED):
            return False
        now = self._clock()
        execution.expires_at = None
        execution.completed_at = now
        execution.updated_at = now
        await self._executions.save(execution)

        self._emit(EventType.EXECUTION_EXPIRED, execution, currentNodeId=execution.current_node_id)
        logger.info("Execution %s expired at node %s", execution.id, execution.current_node_id)
        return True

    def _prepare_continue(self, execution: WorkflowExecution) -> None:
        execution.interaction_count += 1
        execution.expires_at = None
        execution.updated_at = self._clock()
        self._emit(EventType.EXECUTION_RESUMED, execution, previousStatus=ExecutionStatus.WAITING.value)

    async def _claim(
        self,
        execution: WorkflowExecution,
        new_status: ExecutionStatus,
        expected: ExecutionStatus = ExecutionStatus.WAITING,
    ) -> bool:
        """Compare-and-set the stored status; False when another caller won."""
        if not await self._executions.transition(execution.id, expected, new_status):
            logger.debug(
                "Lost transition %s -> %s for execution %s",
                expected.value,
                new_status.value,
                execution.id,
            )
            return False
        execution.status = new_status
        if expected == ExecutionStatus.WAITING:
            self.timeout_scheduler.cancel(execution.id)
        return True

    # --- Helpers ---

    def _lock_for(self, execution_id: str) -> asyncio.Lock:
        lock = self._locks.get(execution_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[execution_id] = lock
        return lock

    def _emit(self, event_type: EventType, execution: WorkflowExecution, **data: Any) -> None:
        """Publish a lifecycle event; publisher failures never break execution."""
        try:
            self._publisher.publish(
                LifecycleEvent(
                    type=event_type,
                    tenant_id=execution.tenant_id,
                    execution_id=execution.id,
                    workflow_id=execution.workflow_id,
                    session_id=execution.session_id,
                    contact_id=execution.contact_id,
                    timestamp=self._clock(),
                    data=data,
                )
            )
        except Exception:
            logger.exception("Error publishing %s event", event_type.value)

    def _generate_id(self) -> str:
        return f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
