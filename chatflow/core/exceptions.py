"""Custom exceptions for the chatflow engine."""

from typing import Any


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WorkflowNotFoundError(WorkflowEngineError):
    """Raised when a workflow is not found."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            message=f"Workflow not found: {workflow_id}",
            details={"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id


class ExecutionNotFoundError(WorkflowEngineError):
    """Raised when an execution record is not found."""

    def __init__(self, execution_id: str) -> None:
        super().__init__(
            message=f"Execution not found: {execution_id}",
            details={"execution_id": execution_id},
        )
        self.execution_id = execution_id


class WorkflowInactiveError(WorkflowEngineError):
    """Raised when trying to trigger an inactive workflow."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(
            message=f"Workflow is not active: {workflow_id}",
            details={"workflow_id": workflow_id},
        )
        self.workflow_id = workflow_id


class ValidationError(WorkflowEngineError):
    """Raised when a workflow graph or node configuration is invalid."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        node_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if node_id:
            details["node_id"] = node_id
        super().__init__(message=message, details=details)
        self.field = field
        self.node_id = node_id


class NodeExecutionError(WorkflowEngineError):
    """Raised when a node fails for a reason without a more specific type."""

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message=message, details={"node_id": node_id})
        self.node_id = node_id


class NoMatchingEdgeError(WorkflowEngineError):
    """Raised when a branch key selects zero (or several) outgoing edges."""

    def __init__(self, node_id: str, key: str | None, ambiguous: bool = False) -> None:
        if ambiguous:
            message = f'Ambiguous edges for key "{key}" on node {node_id}'
        else:
            message = f'No matching edge for key "{key}" on node {node_id}'
        super().__init__(message=message, details={"node_id": node_id, "key": key})
        self.node_id = node_id
        self.key = key


class ExpressionEvaluationError(WorkflowEngineError):
    """Raised when a predicate or typed field cannot be evaluated."""

    def __init__(self, message: str, expression: str | None = None) -> None:
        super().__init__(message=message, details={"expression": expression})
        self.expression = expression


class ExternalCallError(WorkflowEngineError):
    """Raised when an HTTP, scrape, send or media call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        target: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            details={"status_code": status_code, "target": target},
        )
        self.status_code = status_code
        self.target = target


class SandboxError(WorkflowEngineError):
    """Raised when a CODE script fails or breaches a sandbox limit."""


class LoopGuardError(WorkflowEngineError):
    """Raised when an execution exceeds the step ceiling."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            message=f"Loop guard: execution exceeded {limit} steps",
            details={"limit": limit},
        )
        self.limit = limit


class ConcurrencyConflictError(WorkflowEngineError):
    """Raised when a compare-and-set on execution status loses the race."""

    def __init__(self, execution_id: str, expected: str) -> None:
        super().__init__(
            message=f"Execution {execution_id} is no longer {expected}",
            details={"execution_id": execution_id, "expected": expected},
        )
        self.execution_id = execution_id


class ExecutionCancelledError(WorkflowEngineError):
    """Raised inside a running execution when it has been cancelled."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=f"Execution cancelled: {reason}", details={"reason": reason})
        self.reason = reason
