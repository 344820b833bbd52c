"""In-memory execution storage."""

from __future__ import annotations

from ..engine.types import ExecutionStatus, WorkflowExecution, utcnow

ACTIVE_STATUSES = (ExecutionStatus.RUNNING, ExecutionStatus.WAITING)


class ExecutionStore:
    """
    In-memory execution storage.

    Records are copied on the way in and out so callers never share mutable
    state with the store. `transition` compares and sets the status in one
    step; no await happens in between, so it is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._executions: dict[str, WorkflowExecution] = {}

    async def create(self, execution: WorkflowExecution) -> WorkflowExecution:
        self._executions[execution.id] = execution.copy()
        return execution

    async def get(self, execution_id: str) -> WorkflowExecution | None:
        """Get an execution by ID."""
        execution = self._executions.get(execution_id)
        return execution.copy() if execution else None

    async def save(self, execution: WorkflowExecution) -> None:
        # A deleted execution stays deleted
        if execution.id in self._executions:
            self._executions[execution.id] = execution.copy()

    async def transition(
        self,
        execution_id: str,
        expected: ExecutionStatus,
        new_status: ExecutionStatus,
    ) -> bool:
        execution = self._executions.get(execution_id)
        if execution is None or execution.status != expected:
            return False
        execution.status = new_status
        execution.updated_at = utcnow()
        return True

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution record."""
        if execution_id in self._executions:
            del self._executions[execution_id]
            return True
        return False

    async def list(
        self,
        tenant_id: str,
        workflow_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[WorkflowExecution]:
        """List executions, newest first."""
        records = [
            e.copy()
            for e in self._executions.values()
            if e.tenant_id == tenant_id
            and (workflow_id is None or e.workflow_id == workflow_id)
            and (status is None or e.status == status)
        ]
        records.sort(key=lambda e: e.started_at, reverse=True)
        return records[:limit]

    async def list_waiting(self) -> list[WorkflowExecution]:
        return [e.copy() for e in self._executions.values() if e.status == ExecutionStatus.WAITING]

    async def find_active(
        self,
        tenant_id: str,
        session_id: str,
        contact_id: str,
    ) -> list[WorkflowExecution]:
        """RUNNING or WAITING executions of one conversation, oldest first."""
        records = [
            e.copy()
            for e in self._executions.values()
            if e.tenant_id == tenant_id
            and e.session_id == session_id
            and e.contact_id == contact_id
            and e.status in ACTIVE_STATUSES
        ]
        records.sort(key=lambda e: e.started_at)
        return records

    async def list_active_for_workflow(self, workflow_id: str) -> list[WorkflowExecution]:
        return [
            e.copy()
            for e in self._executions.values()
            if e.workflow_id == workflow_id and e.status in ACTIVE_STATUSES
        ]
