"""FastAPI dependency injection for the chatflow engine."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from .runtime import Runtime


# --- Runtime ---


def get_runtime(request: Request) -> Runtime:
    """The runtime built by the application lifespan."""
    return request.app.state.runtime


def get_tenant_id(x_tenant_id: Annotated[str, Header(alias="X-Tenant-ID", min_length=1)]) -> str:
    """Tenant of the request, taken from the X-Tenant-ID header."""
    return x_tenant_id


RuntimeDep = Annotated[Runtime, Depends(get_runtime)]
TenantDep = Annotated[str, Depends(get_tenant_id)]


# --- Service Dependencies ---


def get_workflow_service(runtime: RuntimeDep):
    """Get workflow service instance."""
    from ..services.workflow_service import WorkflowService

    return WorkflowService(
        runtime.workflow_store,
        runtime.execution_store,
        runtime.engine,
        runtime.conversations,
        runtime.registry,
    )


def get_execution_service(runtime: RuntimeDep):
    """Get execution service instance."""
    from ..services.execution_service import ExecutionService

    return ExecutionService(runtime.execution_store, runtime.log_store, runtime.engine)


def get_conversation_service(runtime: RuntimeDep):
    """Get the conversation service."""
    return runtime.conversations


def get_node_registry(runtime: RuntimeDep):
    """Get node registry instance."""
    return runtime.registry
