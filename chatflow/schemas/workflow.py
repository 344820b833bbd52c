"""Workflow-related Pydantic schemas."""

from typing import Any

from pydantic import ConfigDict, Field

from .common import CamelModel


class NodeSchema(CamelModel):
    """Schema for a node in a workflow graph."""

    id: str = Field(..., min_length=1, description="Node id, unique within the workflow")
    type: str = Field(..., description="Node type, e.g. SEND_MESSAGE")
    config: dict[str, Any] = Field(default_factory=dict, description="Type-specific configuration")
    position: dict[str, float] | None = Field(None, description="UI position {x, y}")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "greet",
                "type": "SEND_MESSAGE",
                "config": {"message": "Hi {{variables.name}}!"},
                "position": {"x": 100, "y": 200},
            }
        }
    )


class EdgeSchema(CamelModel):
    """Schema for a directed edge; label or condition carries the branch key."""

    id: str = Field(..., min_length=1)
    source: str
    target: str
    label: str | None = None
    condition: str | None = None


class WorkflowCreateRequest(CamelModel):
    """Request schema for creating a workflow."""

    name: str = Field(..., min_length=1, max_length=255, description="Workflow name")
    description: str | None = Field(None, max_length=1000)
    nodes: list[NodeSchema] = Field(default_factory=list)
    edges: list[EdgeSchema] = Field(default_factory=list)


class WorkflowUpdateRequest(CamelModel):
    """Request schema for updating a workflow."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    nodes: list[NodeSchema] | None = None
    edges: list[EdgeSchema] | None = None


class ActiveToggleRequest(CamelModel):
    """Request schema for toggling workflow active state."""

    active: bool = Field(..., description="Whether the workflow should be active")


class WorkflowResponse(CamelModel):
    """Full workflow document."""

    id: str
    tenant_id: str
    name: str
    description: str | None
    is_active: bool
    nodes: list[NodeSchema]
    edges: list[EdgeSchema]
    created_at: str
    updated_at: str


class WorkflowListItem(CamelModel):
    """Schema for workflow in list response."""

    id: str
    name: str
    description: str | None
    is_active: bool
    node_count: int
    created_at: str
    updated_at: str


class WorkflowActiveResponse(CamelModel):
    """Response for active toggle."""

    id: str
    is_active: bool
    cancelled_executions: int = 0


class RunWorkflowRequest(CamelModel):
    """Manual run of a workflow through its TRIGGER_MANUAL node."""

    session_id: str | None = None
    contact_id: str = Field("manual", min_length=1)
    text: str = ""
    input_data: dict[str, Any] = Field(default_factory=dict)
