"""Execution service for business logic."""

from __future__ import annotations

import logging
from typing import Protocol, TYPE_CHECKING

from ..core.exceptions import ConcurrencyConflictError, ExecutionNotFoundError
from ..engine.types import ExecutionLogRecord, ExecutionStatus, WorkflowExecution
from ..schemas.execution import ExecutionListItem, ExecutionLogResponse, ExecutionResponse

if TYPE_CHECKING:
    from ..engine.execution_engine import ExecutionEngine

logger = logging.getLogger(__name__)


class ExecutionQueryStore(Protocol):
    async def get(self, execution_id: str) -> WorkflowExecution | None: ...

    async def list(
        self,
        tenant_id: str,
        workflow_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[WorkflowExecution]: ...

    async def delete(self, execution_id: str) -> bool: ...


class LogQueryStore(Protocol):
    async def list_for_execution(self, tenant_id: str, execution_id: str) -> list[ExecutionLogRecord]: ...

    async def delete_for_execution(self, execution_id: str) -> int: ...


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def to_execution_list_item(execution: WorkflowExecution) -> ExecutionListItem:
    return ExecutionListItem(
        id=execution.id,
        workflow_id=execution.workflow_id,
        session_id=execution.session_id,
        contact_id=execution.contact_id,
        status=execution.status.value,
        current_node_id=execution.current_node_id,
        interaction_count=execution.interaction_count,
        started_at=execution.started_at.isoformat(),
        updated_at=execution.updated_at.isoformat(),
        completed_at=_iso(execution.completed_at),
        error=execution.error,
    )


def to_execution_response(execution: WorkflowExecution) -> ExecutionResponse:
    return ExecutionResponse(
        **to_execution_list_item(execution).model_dump(),
        tenant_id=execution.tenant_id,
        expires_at=_iso(execution.expires_at),
        context=execution.context.to_dict(),
    )


class ExecutionService:
    """Service for execution history and control."""

    def __init__(
        self,
        execution_store: ExecutionQueryStore,
        log_store: LogQueryStore,
        engine: ExecutionEngine,
    ) -> None:
        self._executions = execution_store
        self._logs = log_store
        self._engine = engine

    async def list_executions(
        self,
        tenant_id: str,
        workflow_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[ExecutionListItem]:
        """List executions, newest first."""
        executions = await self._executions.list(tenant_id, workflow_id=workflow_id, status=status, limit=limit)
        return [to_execution_list_item(e) for e in executions]

    async def get_execution(self, tenant_id: str, execution_id: str) -> ExecutionResponse:
        """Get an execution by ID."""
        return to_execution_response(await self._get_owned(tenant_id, execution_id))

    async def get_logs(self, tenant_id: str, execution_id: str) -> list[ExecutionLogResponse]:
        await self._get_owned(tenant_id, execution_id)
        records = await self._logs.list_for_execution(tenant_id, execution_id)
        return [
            ExecutionLogResponse(
                id=r.id,
                execution_id=r.execution_id,
                node_id=r.node_id,
                event_type=r.event_type,
                data=r.data,
                created_at=r.created_at.isoformat(),
            )
            for r in records
        ]

    async def cancel_execution(self, tenant_id: str, execution_id: str, reason: str) -> ExecutionResponse:
        """
        Cancel a RUNNING or WAITING execution.

        Raises ConcurrencyConflictError when the execution already reached a
        terminal state.
        """
        await self._get_owned(tenant_id, execution_id)
        if not await self._engine.cancel(execution_id, reason):
            raise ConcurrencyConflictError(execution_id, "RUNNING or WAITING")
        logger.info("Execution %s cancelled: %s", execution_id, reason)
        return to_execution_response(await self._get_owned(tenant_id, execution_id))

    async def delete_execution(self, tenant_id: str, execution_id: str) -> None:
        """Delete an execution and its logs, cancelling it first when active."""
        execution = await self._get_owned(tenant_id, execution_id)
        if not execution.is_terminal:
            await self._engine.cancel(execution_id, "Execution deleted")
        await self._executions.delete(execution_id)
        await self._logs.delete_for_execution(execution_id)

    async def _get_owned(self, tenant_id: str, execution_id: str) -> WorkflowExecution:
        execution = await self._executions.get(execution_id)
        if not execution or execution.tenant_id != tenant_id:
            raise ExecutionNotFoundError(execution_id)
        return execution
