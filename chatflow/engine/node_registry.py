"""Node registry for managing node executors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..nodes.base import BaseNode


@dataclass
class NodeTypeInfo:
    """Node type information for API responses."""

    type: str
    description: str
    branching: bool
    config_schema: dict[str, Any] = field(default_factory=dict)


class NodeRegistryClass:
    """Registry for node executors keyed by node type."""

    def __init__(self) -> None:
        self._instances: dict[str, BaseNode] = {}

    def get(self, node_type: str) -> BaseNode:
        """
        Get the executor for a node type.

        Executors are stateless, so one cached instance serves every execution.

        Raises:
            ValueError: If node type is not registered
        """
        if node_type not in self._instances:
            raise ValueError(f'Unknown node type: "{node_type}"')
        return self._instances[node_type]

    def has(self, node_type: str) -> bool:
        """Check if node type is registered."""
        return node_type in self._instances

    def list(self) -> list[str]:
        """List all registered node types."""
        return list(self._instances.keys())

    def register(self, node_class: type[BaseNode]) -> None:
        """Register a node class if not already registered."""
        instance = node_class()
        if instance.type not in self._instances:
            self._instances[instance.type] = instance

    def get_node_info(self) -> list[NodeTypeInfo]:
        return [
            NodeTypeInfo(
                type=node.type,
                description=node.description,
                branching=node.branching,
                config_schema=node.config_model.model_json_schema(by_alias=True),
            )
            for node in self._instances.values()
        ]


# Global registry instance
node_registry = NodeRegistryClass()


def register_all_nodes() -> NodeRegistryClass:
    """Register every built-in node executor."""
    from ..nodes import ALL_NODES

    for node_class in ALL_NODES:
        node_registry.register(node_class)
    return node_registry
