"""Workflow routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ..core.dependencies import TenantDep, get_workflow_service
from ..core.exceptions import (
    ValidationError,
    WorkflowInactiveError,
    WorkflowNotFoundError,
)
from ..schemas.common import SuccessResponse
from ..schemas.execution import ExecutionResponse
from ..schemas.workflow import (
    ActiveToggleRequest,
    RunWorkflowRequest,
    WorkflowActiveResponse,
    WorkflowCreateRequest,
    WorkflowListItem,
    WorkflowResponse,
    WorkflowUpdateRequest,
)
from ..services.workflow_service import WorkflowService

router = APIRouter(prefix="/workflows")


# Type alias for dependency injection
WorkflowServiceDep = Annotated[WorkflowService, Depends(get_workflow_service)]


@router.get("", response_model=list[WorkflowListItem])
async def list_workflows(tenant_id: TenantDep, service: WorkflowServiceDep) -> list[WorkflowListItem]:
    """List the tenant's workflows."""
    return await service.list_workflows(tenant_id)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: str,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
) -> WorkflowResponse:
    """Get a single workflow by ID."""
    try:
        return await service.get_workflow(tenant_id, workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("", response_model=WorkflowResponse, status_code=201)
async def create_workflow(
    workflow: WorkflowCreateRequest,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
) -> WorkflowResponse:
    """Create a new (inactive) workflow."""
    return await service.create_workflow(tenant_id, workflow)


@router.put("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: str,
    workflow: WorkflowUpdateRequest,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
) -> WorkflowResponse:
    """Update an existing workflow."""
    try:
        return await service.update_workflow(tenant_id, workflow_id, workflow)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/{workflow_id}", response_model=SuccessResponse)
async def delete_workflow(
    workflow_id: str,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
) -> SuccessResponse:
    """Delete a workflow, cancelling its active executions."""
    try:
        cancelled = await service.delete_workflow(tenant_id, workflow_id)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return SuccessResponse(message=f"Workflow deleted ({cancelled} execution(s) cancelled)")


@router.patch("/{workflow_id}/active", response_model=WorkflowActiveResponse)
async def toggle_workflow_active(
    workflow_id: str,
    body: ActiveToggleRequest,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
) -> WorkflowActiveResponse:
    """Activate (after validation) or deactivate a workflow."""
    try:
        return await service.set_active(tenant_id, workflow_id, body.active)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/{workflow_id}/run", response_model=ExecutionResponse)
async def run_workflow(
    workflow_id: str,
    tenant_id: TenantDep,
    service: WorkflowServiceDep,
    body: RunWorkflowRequest | None = None,
) -> ExecutionResponse:
    """Run a workflow through its manual trigger."""
    try:
        return await service.run_workflow(tenant_id, workflow_id, body or RunWorkflowRequest())
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except WorkflowInactiveError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
