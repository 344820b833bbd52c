"""Workflow repository for database persistence."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from ..db.models import WorkflowModel
from ..engine.types import Workflow, WorkflowEdge, WorkflowNode, utcnow
from ._utils import as_utc


class WorkflowRepository:
    """Repository for workflow CRUD operations."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, workflow: Workflow) -> Workflow:
        """Create a new workflow."""
        now = utcnow()
        db_workflow = WorkflowModel(
            id=workflow.id,
            tenant_id=workflow.tenant_id,
            name=workflow.name,
            description=workflow.description,
            is_active=workflow.is_active,
            nodes=[n.to_dict() for n in workflow.nodes],
            edges=[e.to_dict() for e in workflow.edges],
            created_at=now,
            updated_at=now,
        )
        async with self._session_factory() as session:
            session.add(db_workflow)
            await session.commit()
            await session.refresh(db_workflow)
            return self._to_workflow(db_workflow)

    async def get(self, workflow_id: str) -> Workflow | None:
        """Get a workflow by ID."""
        async with self._session_factory() as session:
            db_workflow = await session.get(WorkflowModel, workflow_id)
            return self._to_workflow(db_workflow) if db_workflow else None

    async def list(self, tenant_id: str) -> list[Workflow]:
        """List a tenant's workflows, newest first."""
        statement = (
            select(WorkflowModel)
            .where(WorkflowModel.tenant_id == tenant_id)
            .order_by(WorkflowModel.created_at.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._to_workflow(w) for w in result.scalars().all()]

    async def list_active(self, tenant_id: str | None = None) -> list[Workflow]:
        """List active workflows in creation order."""
        statement = select(WorkflowModel).where(WorkflowModel.is_active == True)  # noqa: E712
        if tenant_id is not None:
            statement = statement.where(WorkflowModel.tenant_id == tenant_id)
        statement = statement.order_by(WorkflowModel.created_at)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._to_workflow(w) for w in result.scalars().all()]

    async def update(self, workflow: Workflow) -> Workflow | None:
        """Replace name, description and graph of an existing workflow."""
        async with self._session_factory() as session:
            db_workflow = await session.get(WorkflowModel, workflow.id)
            if not db_workflow:
                return None

            db_workflow.name = workflow.name
            db_workflow.description = workflow.description
            db_workflow.nodes = [n.to_dict() for n in workflow.nodes]
            db_workflow.edges = [e.to_dict() for e in workflow.edges]
            db_workflow.updated_at = utcnow()

            await session.commit()
            await session.refresh(db_workflow)
            return self._to_workflow(db_workflow)

    async def set_active(self, workflow_id: str, active: bool) -> Workflow | None:
        """Set workflow active state."""
        async with self._session_factory() as session:
            db_workflow = await session.get(WorkflowModel, workflow_id)
            if not db_workflow:
                return None

            db_workflow.is_active = active
            db_workflow.updated_at = utcnow()
            await session.commit()
            await session.refresh(db_workflow)
            return self._to_workflow(db_workflow)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._session_factory() as session:
            db_workflow = await session.get(WorkflowModel, workflow_id)
            if not db_workflow:
                return False

            await session.delete(db_workflow)
            await session.commit()
            return True

    def _to_workflow(self, db_workflow: WorkflowModel) -> Workflow:
        """Convert database model to Workflow."""
        return Workflow(
            id=db_workflow.id,
            tenant_id=db_workflow.tenant_id,
            name=db_workflow.name,
            description=db_workflow.description,
            is_active=db_workflow.is_active,
            nodes=[WorkflowNode.from_dict(n) for n in db_workflow.nodes or []],
            edges=[WorkflowEdge.from_dict(e) for e in db_workflow.edges or []],
            created_at=as_utc(db_workflow.created_at),
            updated_at=as_utc(db_workflow.updated_at),
        )
