"""In-memory storage backends."""

from .workflow_store import WorkflowStore
from .execution_store import ExecutionStore
from .log_store import ExecutionLogStore
from .tag_store import ContactTagStore

__all__ = [
    "WorkflowStore",
    "ExecutionStore",
    "ExecutionLogStore",
    "ContactTagStore",
]
