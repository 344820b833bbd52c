"""Pydantic schemas for API request/response validation and node configs."""

from .workflow import (
    NodeSchema,
    EdgeSchema,
    WorkflowCreateRequest,
    WorkflowUpdateRequest,
    WorkflowResponse,
    WorkflowListItem,
    ActiveToggleRequest,
    WorkflowActiveResponse,
    RunWorkflowRequest,
)
from .execution import (
    ExecutionListItem,
    ExecutionResponse,
    ExecutionLogResponse,
    CancelExecutionRequest,
)
from .channel import InboundMessageRequest, DispatchResponse
from .common import (
    CamelModel,
    SuccessResponse,
    HealthResponse,
    RootResponse,
)

__all__ = [
    "NodeSchema",
    "EdgeSchema",
    "WorkflowCreateRequest",
    "WorkflowUpdateRequest",
    "WorkflowResponse",
    "WorkflowListItem",
    "ActiveToggleRequest",
    "WorkflowActiveResponse",
    "RunWorkflowRequest",
    "ExecutionListItem",
    "ExecutionResponse",
    "ExecutionLogResponse",
    "CancelExecutionRequest",
    "InboundMessageRequest",
    "DispatchResponse",
    "CamelModel",
    "SuccessResponse",
    "HealthResponse",
    "RootResponse",
]
