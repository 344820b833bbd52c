"""Workflow service for business logic."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Protocol, TYPE_CHECKING

from ..core.exceptions import (
    ExecutionNotFoundError,
    ValidationError,
    WorkflowInactiveError,
    WorkflowNotFoundError,
)
from ..engine.types import InboundEvent, NodeType, Workflow, WorkflowEdge, WorkflowNode, utcnow
from ..engine.validation import validate_workflow
from ..schemas.workflow import (
    EdgeSchema,
    NodeSchema,
    RunWorkflowRequest,
    WorkflowActiveResponse,
    WorkflowCreateRequest,
    WorkflowListItem,
    WorkflowResponse,
    WorkflowUpdateRequest,
)
from ..schemas.execution import ExecutionResponse
from .execution_service import to_execution_response

if TYPE_CHECKING:
    from ..engine.collaborators import ExecutionStore
    from ..engine.execution_engine import ExecutionEngine
    from ..engine.node_registry import NodeRegistryClass
    from .conversation_service import ConversationService

logger = logging.getLogger(__name__)


class WorkflowRepositoryLike(Protocol):
    async def create(self, workflow: Workflow) -> Workflow: ...
    async def get(self, workflow_id: str) -> Workflow | None: ...
    async def list(self, tenant_id: str) -> list[Workflow]: ...
    async def update(self, workflow: Workflow) -> Workflow | None: ...
    async def set_active(self, workflow_id: str, active: bool) -> Workflow | None: ...
    async def delete(self, workflow_id: str) -> bool: ...


class WorkflowService:
    """Service for workflow operations."""

    def __init__(
        self,
        workflow_repo: WorkflowRepositoryLike,
        execution_store: ExecutionStore,
        engine: ExecutionEngine,
        conversations: ConversationService,
        registry: NodeRegistryClass,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._executions = execution_store
        self._engine = engine
        self._conversations = conversations
        self._registry = registry

    async def list_workflows(self, tenant_id: str) -> list[WorkflowListItem]:
        """List a tenant's workflows."""
        workflows = await self._workflow_repo.list(tenant_id)
        return [
            WorkflowListItem(
                id=w.id,
                name=w.name,
                description=w.description,
                is_active=w.is_active,
                node_count=len(w.nodes),
                created_at=w.created_at.isoformat(),
                updated_at=w.updated_at.isoformat(),
            )
            for w in workflows
        ]

    async def get_workflow(self, tenant_id: str, workflow_id: str) -> WorkflowResponse:
        """Get a workflow by ID."""
        return self._to_response(await self._get_owned(tenant_id, workflow_id))

    async def create_workflow(self, tenant_id: str, request: WorkflowCreateRequest) -> WorkflowResponse:
        """Create a new, inactive workflow."""
        now = utcnow()
        workflow = Workflow(
            id=self._generate_id(),
            tenant_id=tenant_id,
            name=request.name,
            description=request.description,
            nodes=[self._to_node(n) for n in request.nodes],
            edges=[self._to_edge(e) for e in request.edges],
            is_active=False,
            created_at=now,
            updated_at=now,
        )
        stored = await self._workflow_repo.create(workflow)
        logger.info("Workflow %s created for tenant %s", stored.id, tenant_id)
        return self._to_response(stored)

    async def update_workflow(
        self,
        tenant_id: str,
        workflow_id: str,
        request: WorkflowUpdateRequest,
    ) -> WorkflowResponse:
        """Update an existing workflow. An active workflow must stay valid."""
        existing = await self._get_owned(tenant_id, workflow_id)

        if request.name is not None:
            existing.name = request.name
        if request.description is not None:
            existing.description = request.description
        if request.nodes is not None:
            existing.nodes = [self._to_node(n) for n in request.nodes]
        if request.edges is not None:
            existing.edges = [self._to_edge(e) for e in request.edges]
        existing.updated_at = utcnow()

        if existing.is_active:
            validate_workflow(existing, self._registry)

        updated = await self._workflow_repo.update(existing)
        if not updated:
            raise WorkflowNotFoundError(workflow_id)
        return self._to_response(updated)

    async def delete_workflow(self, tenant_id: str, workflow_id: str) -> int:
        """Delete a workflow and cancel its in-flight executions."""
        await self._get_owned(tenant_id, workflow_id)
        cancelled = await self._engine.cancel_workflow(workflow_id, "Workflow deleted")
        if not await self._workflow_repo.delete(workflow_id):
            raise WorkflowNotFoundError(workflow_id)
        logger.info("Workflow %s deleted", workflow_id)
        return cancelled

    async def set_active(self, tenant_id: str, workflow_id: str, active: bool) -> WorkflowActiveResponse:
        """
        Activate or deactivate a workflow.

        Activation validates the graph first; deactivation cancels every
        execution of the workflow that is still RUNNING or WAITING.
        """
        workflow = await self._get_owned(tenant_id, workflow_id)
        if active:
            validate_workflow(workflow, self._registry)

        updated = await self._workflow_repo.set_active(workflow_id, active)
        if not updated:
            raise WorkflowNotFoundError(workflow_id)

        cancelled = 0
        if not active:
            cancelled = await self._engine.cancel_workflow(workflow_id, "Workflow deactivated")
        logger.info("Workflow %s %s", workflow_id, "activated" if active else "deactivated")
        return WorkflowActiveResponse(id=updated.id, is_active=updated.is_active, cancelled_executions=cancelled)

    async def run_workflow(
        self,
        tenant_id: str,
        workflow_id: str,
        request: RunWorkflowRequest,
    ) -> ExecutionResponse:
        """Start a workflow through its TRIGGER_MANUAL node."""
        workflow = await self._get_owned(tenant_id, workflow_id)
        if not workflow.is_active:
            raise WorkflowInactiveError(workflow_id)

        trigger = next(
            (n for n in workflow.trigger_nodes() if n.type == NodeType.TRIGGER_MANUAL.value),
            None,
        )
        if trigger is None:
            raise ValidationError("Workflow has no manual trigger", field="nodes")

        session_id = request.session_id or trigger.config.get("sessionId")
        if not session_id:
            raise ValidationError("sessionId is required for a manual run", field="sessionId")

        event = InboundEvent(
            kind="manual",
            tenant_id=tenant_id,
            session_id=session_id,
            contact_id=request.contact_id,
            text=request.text,
            workflow_id=workflow_id,
            payload=dict(request.input_data),
        )
        result = await self._conversations.handle_signal(event)
        if not result.execution_ids:
            raise ValidationError("Manual trigger did not match", field="sessionId")

        execution = await self._executions.get(result.execution_ids[0])
        if execution is None:
            raise ExecutionNotFoundError(result.execution_ids[0])
        return to_execution_response(execution)

    async def _get_owned(self, tenant_id: str, workflow_id: str) -> Workflow:
        workflow = await self._workflow_repo.get(workflow_id)
        if not workflow or workflow.tenant_id != tenant_id:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    def _to_node(self, node: NodeSchema) -> WorkflowNode:
        return WorkflowNode(id=node.id, type=node.type, config=dict(node.config), position=node.position)

    def _to_edge(self, edge: EdgeSchema) -> WorkflowEdge:
        return WorkflowEdge(
            id=edge.id,
            source=edge.source,
            target=edge.target,
            label=edge.label,
            condition=edge.condition,
        )

    def _to_response(self, workflow: Workflow) -> WorkflowResponse:
        return WorkflowResponse(
            id=workflow.id,
            tenant_id=workflow.tenant_id,
            name=workflow.name,
            description=workflow.description,
            is_active=workflow.is_active,
            nodes=[NodeSchema(**n.to_dict()) for n in workflow.nodes],
            edges=[EdgeSchema(**e.to_dict()) for e in workflow.edges],
            created_at=workflow.created_at.isoformat(),
            updated_at=workflow.updated_at.isoformat(),
        )

    def _generate_id(self) -> str:
        """Generate a unique workflow ID."""
        return f"wf_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"
