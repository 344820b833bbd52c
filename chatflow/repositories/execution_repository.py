"""Execution repository for database persistence."""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from ..db.models import ExecutionModel
from ..engine.types import (
    ExecutionContext,
    ExecutionStatus,
    WorkflowExecution,
    utcnow,
)
from ._utils import as_utc

ACTIVE_STATUSES = (ExecutionStatus.RUNNING.value, ExecutionStatus.WAITING.value)


class ExecutionRepository:
    """
    Repository for workflow executions.

    `transition` is a conditional UPDATE on the status column, so concurrent
    processes racing on the same WAITING execution see exactly one winner.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Insert a new execution."""
        async with self._session_factory() as session:
            db_execution = ExecutionModel(id=execution.id)
            self._apply(db_execution, execution)
            session.add(db_execution)
            await session.commit()
        return execution

    async def get(self, execution_id: str) -> WorkflowExecution | None:
        """Get an execution by ID."""
        async with self._session_factory() as session:
            db_execution = await session.get(ExecutionModel, execution_id)
            return self._to_execution(db_execution) if db_execution else None

    async def save(self, execution: WorkflowExecution) -> None:
        """Write the full execution state. A deleted execution stays deleted."""
        async with self._session_factory() as session:
            db_execution = await session.get(ExecutionModel, execution.id)
            if not db_execution:
                return
            self._apply(db_execution, execution)
            await session.commit()

    async def transition(
        self,
        execution_id: str,
        expected: ExecutionStatus,
        new_status: ExecutionStatus,
    ) -> bool:
        """Compare-and-set the status; True only for the caller that won."""
        statement = (
            update(ExecutionModel)
            .where(ExecutionModel.id == execution_id)
            .where(ExecutionModel.status == expected.value)
            .values(status=new_status.value, updated_at=utcnow())
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount == 1

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution record."""
        async with self._session_factory() as session:
            db_execution = await session.get(ExecutionModel, execution_id)
            if not db_execution:
                return False
            await session.delete(db_execution)
            await session.commit()
            return True

    async def list(
        self,
        tenant_id: str,
        workflow_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[WorkflowExecution]:
        """List executions, newest first."""
        statement = select(ExecutionModel).where(ExecutionModel.tenant_id == tenant_id)
        if workflow_id:
            statement = statement.where(ExecutionModel.workflow_id == workflow_id)
        if status:
            statement = statement.where(ExecutionModel.status == status.value)
        statement = statement.order_by(ExecutionModel.started_at.desc()).limit(limit)
        return await self._fetch(statement)

    async def list_waiting(self) -> list[WorkflowExecution]:
        """All WAITING executions (timeout index rebuild)."""
        statement = select(ExecutionModel).where(ExecutionModel.status == ExecutionStatus.WAITING.value)
        return await self._fetch(statement)

    async def find_active(
        self,
        tenant_id: str,
        session_id: str,
        contact_id: str,
    ) -> list[WorkflowExecution]:
        """RUNNING or WAITING executions of one conversation, oldest first."""
        statement = (
            select(ExecutionModel)
            .where(ExecutionModel.tenant_id == tenant_id)
            .where(ExecutionModel.session_id == session_id)
            .where(ExecutionModel.contact_id == contact_id)
            .where(ExecutionModel.status.in_(ACTIVE_STATUSES))
            .order_by(ExecutionModel.started_at)
        )
        return await self._fetch(statement)

    async def list_active_for_workflow(self, workflow_id: str) -> list[WorkflowExecution]:
        statement = (
            select(ExecutionModel)
            .where(ExecutionModel.workflow_id == workflow_id)
            .where(ExecutionModel.status.in_(ACTIVE_STATUSES))
        )
        return await self._fetch(statement)

    async def _fetch(self, statement) -> list[WorkflowExecution]:
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._to_execution(e) for e in result.scalars().all()]

    def _apply(self, db_execution: ExecutionModel, execution: WorkflowExecution) -> None:
        db_execution.tenant_id = execution.tenant_id
        db_execution.workflow_id = execution.workflow_id
        db_execution.session_id = execution.session_id
        db_execution.contact_id = execution.contact_id
        db_execution.current_node_id = execution.current_node_id
        db_execution.status = execution.status.value
        db_execution.context = execution.context.to_dict()
        db_execution.interaction_count = execution.interaction_count
        db_execution.error = execution.error
        db_execution.started_at = execution.started_at
        db_execution.updated_at = execution.updated_at
        db_execution.expires_at = execution.expires_at
        db_execution.completed_at = execution.completed_at

    def _to_execution(self, db_execution: ExecutionModel) -> WorkflowExecution:
        """Convert database model to WorkflowExecution."""
        return WorkflowExecution(
            id=db_execution.id,
            tenant_id=db_execution.tenant_id,
            workflow_id=db_execution.workflow_id,
            session_id=db_execution.session_id,
            contact_id=db_execution.contact_id,
            current_node_id=db_execution.current_node_id,
            status=ExecutionStatus(db_execution.status),
            context=ExecutionContext.from_dict(db_execution.context),
            interaction_count=db_execution.interaction_count,
            error=db_execution.error,
            started_at=as_utc(db_execution.started_at),
            updated_at=as_utc(db_execution.updated_at),
            expires_at=as_utc(db_execution.expires_at),
            completed_at=as_utc(db_execution.completed_at),
        )
