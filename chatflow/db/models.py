"""SQLModel database models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel

from ..engine.types import utcnow


class WorkflowModel(SQLModel, table=True):
    """Workflow database model."""

    __tablename__ = "workflows"

    id: str = Field(primary_key=True)
    tenant_id: str = Field(index=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)
    is_active: bool = Field(default=False, index=True)

    # Graph stored as JSON lists of node/edge documents
    nodes: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    edges: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))


class ExecutionModel(SQLModel, table=True):
    """Workflow execution database model."""

    __tablename__ = "executions"

    id: str = Field(primary_key=True)
    tenant_id: str = Field(index=True)
    workflow_id: str = Field(index=True)
    session_id: str = Field(index=True)
    contact_id: str = Field(index=True)
    current_node_id: str | None = Field(default=None)

    status: str = Field(index=True)  # RUNNING, WAITING, COMPLETED, EXPIRED, ERROR
    context: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    interaction_count: int = Field(default=0)
    error: str | None = Field(default=None)

    started_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), index=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))
    expires_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), index=True))
    completed_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))


class ExecutionLogModel(SQLModel, table=True):
    """Persisted lifecycle event of an execution."""

    __tablename__ = "execution_logs"

    id: str = Field(primary_key=True)
    tenant_id: str = Field(index=True)
    execution_id: str = Field(index=True)
    node_id: str | None = Field(default=None)
    event_type: str = Field(index=True)
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), index=True))


class ContactTagModel(SQLModel, table=True):
    """Tag or label set of one contact."""

    __tablename__ = "contact_tags"

    tenant_id: str = Field(primary_key=True)
    namespace: str = Field(primary_key=True)  # tags or labels
    contact_id: str = Field(primary_key=True)
    values: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True)))
