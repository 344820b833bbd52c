"""Database repositories."""

from .workflow_repository import WorkflowRepository
from .execution_repository import ExecutionRepository
from .execution_log_repository import ExecutionLogRepository
from .contact_tag_repository import ContactTagRepository

__all__ = [
    "WorkflowRepository",
    "ExecutionRepository",
    "ExecutionLogRepository",
    "ContactTagRepository",
]
