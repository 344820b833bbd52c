"""Base node class for all node executors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError
from ..schemas.node_config import NodeConfig

if TYPE_CHECKING:
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode

ConfigT = TypeVar("ConfigT", bound=NodeConfig)


class BaseNode(ABC, Generic[ConfigT]):
    """
    Abstract base class for all node executors.

    Subclasses declare `config_model`; `run()` interpolates the raw config
    (unless `interpolate_config` is False), validates it and hands the typed
    config to `execute()`.
    """

    config_model: ClassVar[type[NodeConfig]] = NodeConfig

    # Branching nodes select an outgoing edge by key
    branching: ClassVar[bool] = False

    # Nodes that evaluate their own expressions receive the raw config
    interpolate_config: ClassVar[bool] = True

    @property
    @abstractmethod
    def type(self) -> str:
        """Node type identifier."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what the node does."""
        ...

    @abstractmethod
    async def execute(
        self,
        context: NodeContext,
        node: WorkflowNode,
        config: ConfigT,
    ) -> NodeOutcome:
        """Execute the node logic."""
        ...

    async def run(self, context: NodeContext, node: WorkflowNode) -> NodeOutcome:
        raw = node.config or {}
        if self.interpolate_config:
            raw = context.evaluator.resolve(raw, context.state)
        config = self.parse_config(raw, node.id)
        return await self.execute(context, node, config)  # type: ignore[arg-type]

    def parse_config(self, raw: dict[str, Any], node_id: str | None = None) -> NodeConfig:
        """Validate a config payload against `config_model`."""
        try:
            return self.config_model.model_validate(raw)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(
                f"Invalid {self.type} config: {location or 'config'}: {first.get('msg')}",
                field=location or None,
                node_id=node_id,
            ) from e

    def next(self, branch_key: str | None = None) -> NodeOutcome:
        """Helper to continue along an outgoing edge."""
        from ..engine.types import NodeOutcome

        return NodeOutcome.next(branch_key)

    def suspend(self, timeout_seconds: float) -> NodeOutcome:
        """Helper to park the execution until a reply or deadline."""
        from ..engine.types import NodeOutcome

        return NodeOutcome.suspend(timeout_seconds)
