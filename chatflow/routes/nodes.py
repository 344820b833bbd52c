"""Node type routes."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from ..core.dependencies import get_node_registry
from ..engine.node_registry import NodeRegistryClass

router = APIRouter(prefix="/nodes")


NodeRegistryDep = Annotated[NodeRegistryClass, Depends(get_node_registry)]


def _info_to_dict(info) -> dict[str, Any]:
    return {
        "type": info.type,
        "description": info.description,
        "branching": info.branching,
        "configSchema": info.config_schema,
    }


@router.get("")
async def list_nodes(registry: NodeRegistryDep) -> list[dict[str, Any]]:
    """List all available node types with their config schemas."""
    return [_info_to_dict(info) for info in registry.get_node_info()]


@router.get("/{node_type}")
async def get_node_schema(node_type: str, registry: NodeRegistryDep) -> dict[str, Any]:
    """Get the config schema of one node type."""
    for info in registry.get_node_info():
        if info.type == node_type:
            return _info_to_dict(info)
    raise HTTPException(status_code=404, detail=f'Node type "{node_type}" not found')
