"""Tag and label nodes - mutate or read per-contact sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseNode
from ..core.exceptions import NodeExecutionError
from ..schemas.node_config import TagsConfig

if TYPE_CHECKING:
    from ..engine.collaborators import TagService
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode


class _ContactSetNode(BaseNode):
    config_model = TagsConfig
    default_save_as = "tags"

    def _service(self, context: NodeContext) -> TagService | None:
        raise NotImplementedError

    async def execute(self, context: NodeContext, node: WorkflowNode, config: TagsConfig) -> NodeOutcome:
        service = self._service(context)
        if service is None:
            raise NodeExecutionError(f"No {self.default_save_as} service configured", node_id=node.id)

        execution = context.execution
        if config.action == "list":
            values = await context.cancel_token.guard(
                service.list(execution.tenant_id, execution.contact_id)
            )
            context.state.variables[config.save_as or self.default_save_as] = list(values)
            return self.next()

        values = await context.cancel_token.guard(
            service.mutate(execution.tenant_id, execution.contact_id, config.action, config.values)
        )
        if config.save_as:
            context.state.variables[config.save_as] = list(values)
        return self.next()


class SetTagsNode(_ContactSetNode):
    default_save_as = "tags"

    @property
    def type(self) -> str:
        return "SET_TAGS"

    @property
    def description(self) -> str:
        return "Add, remove, replace or read contact tags"

    def _service(self, context: NodeContext) -> TagService | None:
        return context.services.tags


class ManageLabelsNode(_ContactSetNode):
    default_save_as = "labels"

    @property
    def type(self) -> str:
        return "MANAGE_LABELS"

    @property
    def description(self) -> str:
        return "Add, remove, replace or read contact labels"

    def _service(self, context: NodeContext) -> TagService | None:
        return context.services.labels
