"""Execution-related Pydantic schemas."""

from typing import Any

from pydantic import Field

from .common import CamelModel


class ExecutionListItem(CamelModel):
    """Schema for execution in list response."""

    id: str
    workflow_id: str
    session_id: str
    contact_id: str
    status: str
    current_node_id: str | None
    interaction_count: int
    started_at: str
    updated_at: str
    completed_at: str | None
    error: str | None


class ExecutionResponse(ExecutionListItem):
    """Detailed execution response including the execution context."""

    tenant_id: str
    expires_at: str | None
    context: dict[str, Any]


class ExecutionLogResponse(CamelModel):
    """Persisted lifecycle event."""

    id: str
    execution_id: str
    node_id: str | None
    event_type: str
    data: dict[str, Any]
    created_at: str


class CancelExecutionRequest(CamelModel):
    reason: str = Field("Cancelled by user", min_length=1)
