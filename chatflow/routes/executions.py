"""Execution routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.dependencies import TenantDep, get_execution_service
from ..core.exceptions import ConcurrencyConflictError, ExecutionNotFoundError
from ..engine.types import ExecutionStatus
from ..schemas.common import SuccessResponse
from ..schemas.execution import (
    CancelExecutionRequest,
    ExecutionListItem,
    ExecutionLogResponse,
    ExecutionResponse,
)
from ..services.execution_service import ExecutionService

router = APIRouter(prefix="/executions")


ExecutionServiceDep = Annotated[ExecutionService, Depends(get_execution_service)]


@router.get("", response_model=list[ExecutionListItem])
async def list_executions(
    tenant_id: TenantDep,
    service: ExecutionServiceDep,
    workflow_id: Annotated[str | None, Query(alias="workflowId")] = None,
    status: ExecutionStatus | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[ExecutionListItem]:
    """List execution history, optionally filtered by workflow or status."""
    return await service.list_executions(tenant_id, workflow_id=workflow_id, status=status, limit=limit)


@router.get("/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    execution_id: str,
    tenant_id: TenantDep,
    service: ExecutionServiceDep,
) -> ExecutionResponse:
    """Get execution details."""
    try:
        return await service.get_execution(tenant_id, execution_id)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{execution_id}/logs", response_model=list[ExecutionLogResponse])
async def get_execution_logs(
    execution_id: str,
    tenant_id: TenantDep,
    service: ExecutionServiceDep,
) -> list[ExecutionLogResponse]:
    """Lifecycle events recorded for an execution, oldest first."""
    try:
        return await service.get_logs(tenant_id, execution_id)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{execution_id}/cancel", response_model=ExecutionResponse)
async def cancel_execution(
    execution_id: str,
    tenant_id: TenantDep,
    service: ExecutionServiceDep,
    body: CancelExecutionRequest | None = None,
) -> ExecutionResponse:
    """Cancel a running or waiting execution."""
    reason = (body or CancelExecutionRequest()).reason
    try:
        return await service.cancel_execution(tenant_id, execution_id, reason)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ConcurrencyConflictError as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.delete("/{execution_id}", response_model=SuccessResponse)
async def delete_execution(
    execution_id: str,
    tenant_id: TenantDep,
    service: ExecutionServiceDep,
) -> SuccessResponse:
    """Delete an execution record and its logs."""
    try:
        await service.delete_execution(tenant_id, execution_id)
    except ExecutionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return SuccessResponse(message="Execution deleted")
