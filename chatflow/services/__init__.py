"""Service layer for business logic."""

from .contact_tags import ContactTagService, apply_tag_action
from .conversation_service import ConversationService, DispatchResult
from .execution_log_service import ExecutionLogRecorder
from .execution_service import ExecutionService
from .workflow_service import WorkflowService

__all__ = [
    "ContactTagService",
    "apply_tag_action",
    "ConversationService",
    "DispatchResult",
    "ExecutionLogRecorder",
    "ExecutionService",
    "WorkflowService",
]
