"""In-memory workflow storage."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine.types import Workflow


class WorkflowStore:
    """In-memory workflow storage used when no database is configured."""

    def __init__(self) -> None:
        self._workflows: dict[str, Workflow] = {}

    async def create(self, workflow: Workflow) -> Workflow:
        self._workflows[workflow.id] = copy.deepcopy(workflow)
        return workflow

    async def get(self, workflow_id: str) -> Workflow | None:
        """Get a workflow by ID."""
        workflow = self._workflows.get(workflow_id)
        return copy.deepcopy(workflow) if workflow else None

    async def list(self, tenant_id: str) -> list[Workflow]:
        """List a tenant's workflows, newest first."""
        workflows = [copy.deepcopy(w) for w in self._workflows.values() if w.tenant_id == tenant_id]
        workflows.sort(key=lambda w: w.created_at, reverse=True)
        return workflows

    async def list_active(self, tenant_id: str | None = None) -> list[Workflow]:
        """Active workflows in creation order."""
        workflows = [
            copy.deepcopy(w)
            for w in self._workflows.values()
            if w.is_active and (tenant_id is None or w.tenant_id == tenant_id)
        ]
        workflows.sort(key=lambda w: w.created_at)
        return workflows

    async def update(self, workflow: Workflow) -> Workflow | None:
        if workflow.id not in self._workflows:
            return None
        self._workflows[workflow.id] = copy.deepcopy(workflow)
        return workflow

    async def set_active(self, workflow_id: str, active: bool) -> Workflow | None:
        workflow = self._workflows.get(workflow_id)
        if not workflow:
            return None
        workflow.is_active = active
        return copy.deepcopy(workflow)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        if workflow_id in self._workflows:
            del self._workflows[workflow_id]
            return True
        return False
