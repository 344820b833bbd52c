"""Database configuration and models."""

from .session import create_session_factory, init_db
from .models import WorkflowModel, ExecutionModel, ExecutionLogModel, ContactTagModel

__all__ = [
    "create_session_factory",
    "init_db",
    "WorkflowModel",
    "ExecutionModel",
    "ExecutionLogModel",
    "ContactTagModel",
]
