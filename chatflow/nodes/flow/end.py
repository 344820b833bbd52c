"""End node - complete the execution with its final output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import BaseNode
from ...schemas.node_config import EndConfig

if TYPE_CHECKING:
    from ...engine.types import NodeContext, NodeOutcome, WorkflowNode


class EndNode(BaseNode):
    config_model = EndConfig

    @property
    def type(self) -> str:
        return "END"

    @property
    def description(self) -> str:
        return "Finish the workflow and capture output variables"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: EndConfig) -> NodeOutcome:
        from ...engine.types import NodeOutcome

        variables = context.state.variables
        if config.output_variables:
            output = {name: variables[name] for name in config.output_variables if name in variables}
        else:
            output = dict(variables)
        return NodeOutcome.terminate(output)
