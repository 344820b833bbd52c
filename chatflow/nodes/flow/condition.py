"""Condition node - two-way branch on a boolean expression."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import BaseNode
from ...schemas.node_config import ConditionConfig

if TYPE_CHECKING:
    from ...engine.types import NodeContext, NodeOutcome, WorkflowNode


class ConditionNode(BaseNode):
    """Route to the "true" or "false" edge."""

    config_model = ConditionConfig
    branching = True
    interpolate_config = False

    @property
    def type(self) -> str:
        return "CONDITION"

    @property
    def description(self) -> str:
        return "Branch on a boolean expression"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: ConditionConfig) -> NodeOutcome:
        result = context.evaluator.evaluate_predicate(config.expression, context.state)
        return self.next("true" if result else "false")
