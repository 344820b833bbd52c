"""Switch node - route to the first rule whose comparison holds."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import BaseNode
from ...core.exceptions import NoMatchingEdgeError
from ...schemas.node_config import SwitchConfig

if TYPE_CHECKING:
    from ...engine.types import NodeContext, NodeOutcome, WorkflowNode


class SwitchNode(BaseNode):
    """Switch node - evaluate rules in order, first match wins."""

    config_model = SwitchConfig
    branching = True
    interpolate_config = False

    @property
    def type(self) -> str:
        return "SWITCH"

    @property
    def description(self) -> str:
        return "Route to the output of the first matching rule"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: SwitchConfig) -> NodeOutcome:
        evaluator = context.evaluator
        for rule in config.rules:
            left = evaluator.resolve_operand(rule.value1, context.state)
            right = evaluator.resolve_operand(rule.value2, context.state)
            if evaluator.compare(left, rule.operator, right):
                return self.next(rule.output_key)

        if config.fallback_output:
            return self.next(config.fallback_output)

        raise NoMatchingEdgeError(node.id, None)
