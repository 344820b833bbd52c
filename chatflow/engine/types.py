"""Core type definitions for the execution engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.config import Settings
    from .cancellation import CancelToken
    from .collaborators import Collaborators
    from .expression_engine import ExpressionEngine


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatus(str, Enum):
    """Lifecycle states of a workflow execution."""

    RUNNING = "RUNNING"
    WAITING = "WAITING"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.EXPIRED, ExecutionStatus.ERROR)


class NodeType(str, Enum):
    """Wire names of the supported node types."""

    TRIGGER_MESSAGE = "TRIGGER_MESSAGE"
    TRIGGER_SCHEDULE = "TRIGGER_SCHEDULE"
    TRIGGER_MANUAL = "TRIGGER_MANUAL"
    SEND_MESSAGE = "SEND_MESSAGE"
    SEND_MEDIA = "SEND_MEDIA"
    SEND_BUTTONS = "SEND_BUTTONS"
    SEND_LIST = "SEND_LIST"
    HTTP_REQUEST = "HTTP_REQUEST"
    HTTP_SCRAPE = "HTTP_SCRAPE"
    CODE = "CODE"
    EDIT_FIELDS = "EDIT_FIELDS"
    MANAGE_LABELS = "MANAGE_LABELS"
    SET_TAGS = "SET_TAGS"
    CONDITION = "CONDITION"
    SWITCH = "SWITCH"
    WAIT_REPLY = "WAIT_REPLY"
    WAIT = "WAIT"
    END = "END"


TRIGGER_NODE_TYPES = frozenset(
    {NodeType.TRIGGER_MESSAGE.value, NodeType.TRIGGER_SCHEDULE.value, NodeType.TRIGGER_MANUAL.value}
)


@dataclass
class WorkflowNode:
    """A typed node in a workflow graph."""

    id: str
    type: str
    config: dict[str, Any] = field(default_factory=dict)
    position: dict[str, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.type, "config": self.config, "position": self.position}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowNode:
        return cls(
            id=data["id"],
            type=data["type"],
            config=dict(data.get("config") or {}),
            position=data.get("position"),
        )


@dataclass
class WorkflowEdge:
    """Directed edge; `label` or `condition` carries the branch key."""

    id: str
    source: str
    target: str
    label: str | None = None
    condition: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "condition": self.condition,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowEdge:
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            label=data.get("label"),
            condition=data.get("condition"),
        )


@dataclass
class Workflow:
    """Workflow definition owned by a tenant."""

    id: str
    tenant_id: str
    name: str
    nodes: list[WorkflowNode] = field(default_factory=list)
    edges: list[WorkflowEdge] = field(default_factory=list)
    is_active: bool = False
    description: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def get_node(self, node_id: str | None) -> WorkflowNode | None:
        if node_id is None:
            return None
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing_edges(self, node_id: str) -> list[WorkflowEdge]:
        return [e for e in self.edges if e.source == node_id]

    def trigger_nodes(self) -> list[WorkflowNode]:
        """Trigger nodes in declaration order."""
        return [n for n in self.nodes if n.type in TRIGGER_NODE_TYPES]


@dataclass
class ExecutionContext:
    """Mutable state shared by all nodes of one execution."""

    globals: dict[str, Any] = field(default_factory=dict)
    input: dict[str, Any] = field(default_factory=dict)
    output: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "globals": self.globals,
            "input": self.input,
            "output": self.output,
            "variables": self.variables,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ExecutionContext:
        data = data or {}
        return cls(
            globals=dict(data.get("globals") or {}),
            input=dict(data.get("input") or {}),
            output=dict(data.get("output") or {}),
            variables=dict(data.get("variables") or {}),
        )


@dataclass
class WorkflowExecution:
    """Durable record of one run of a workflow for one contact."""

    id: str
    tenant_id: str
    workflow_id: str
    session_id: str
    contact_id: str
    current_node_id: str | None
    status: ExecutionStatus
    context: ExecutionContext = field(default_factory=ExecutionContext)
    interaction_count: int = 0
    started_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    expires_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def copy(self) -> WorkflowExecution:
        """Deep copy, so stores never share mutable state with callers."""
        return copy.deepcopy(self)


@dataclass
class InboundEvent:
    """An inbound message, schedule tick or manual run signal."""

    kind: Literal["message", "schedule", "manual"]
    tenant_id: str
    session_id: str
    contact_id: str
    text: str = ""
    timestamp: datetime = field(default_factory=utcnow)
    workflow_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_input(self) -> dict[str, Any]:
        """Payload stored as `context.input` of a new execution."""
        return {
            **self.payload,
            "kind": self.kind,
            "text": self.text,
            "sessionId": self.session_id,
            "contactId": self.contact_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class NodeOutcome:
    """
    Result of running one node.

    `continue` follows an edge (selected by `branch_key` for branching nodes),
    `suspend` parks the execution for `timeout_seconds`, `terminate` completes
    it with `output`.
    """

    kind: Literal["continue", "suspend", "terminate"]
    branch_key: str | None = None
    timeout_seconds: float | None = None
    output: dict[str, Any] | None = None

    @classmethod
    def next(cls, branch_key: str | None = None) -> NodeOutcome:
        return cls(kind="continue", branch_key=branch_key)

    @classmethod
    def suspend(cls, timeout_seconds: float) -> NodeOutcome:
        return cls(kind="suspend", timeout_seconds=timeout_seconds)

    @classmethod
    def terminate(cls, output: dict[str, Any]) -> NodeOutcome:
        return cls(kind="terminate", output=output)


@dataclass
class NodeContext:
    """Everything a node executor may touch while it runs."""

    execution: WorkflowExecution
    workflow: Workflow
    services: Collaborators
    evaluator: ExpressionEngine
    cancel_token: CancelToken
    settings: Settings

    @property
    def state(self) -> ExecutionContext:
        return self.execution.context


class EventType(str, Enum):
    """Lifecycle notifications published by the engine."""

    EXECUTION_STARTED = "execution.started"
    EXECUTION_RESUMED = "execution.resumed"
    EXECUTION_WAITING = "execution.waiting"
    EXECUTION_COMPLETED = "execution.completed"
    EXECUTION_EXPIRED = "execution.expired"
    EXECUTION_ERROR = "execution.error"
    NODE_EXECUTED = "node.executed"


@dataclass
class LifecycleEvent:
    """One published lifecycle notification."""

    type: EventType
    tenant_id: str
    execution_id: str
    workflow_id: str
    session_id: str
    contact_id: str
    timestamp: datetime
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def node_id(self) -> str | None:
        return self.data.get("nodeId") or self.data.get("currentNodeId")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "tenantId": self.tenant_id,
            "executionId": self.execution_id,
            "workflowId": self.workflow_id,
            "sessionId": self.session_id,
            "contactId": self.contact_id,
            "timestamp": self.timestamp.isoformat(),
            **self.data,
        }


@dataclass
class ExecutionLogRecord:
    """Persisted copy of a lifecycle event."""

    id: str
    tenant_id: str
    execution_id: str
    event_type: str
    data: dict[str, Any]
    created_at: datetime
    node_id: str | None = None
