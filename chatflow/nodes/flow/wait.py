"""Wait nodes - suspend the execution until a reply or a deadline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base import BaseNode
from ...schemas.node_config import WaitConfig, WaitReplyConfig

if TYPE_CHECKING:
    from ...engine.types import NodeContext, NodeOutcome, WorkflowNode


class WaitReplyNode(BaseNode):
    """
    Park until the contact replies.

    The engine stores the reply under `saveAs` on resume, and applies
    `onTimeout` (END or GOTO_NODE) when the deadline passes first.
    """

    config_model = WaitReplyConfig

    @property
    def type(self) -> str:
        return "WAIT_REPLY"

    @property
    def description(self) -> str:
        return "Wait for the contact to reply"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: WaitReplyConfig) -> NodeOutcome:
        timeout = config.timeout_seconds
        if timeout is None:
            timeout = context.settings.wait_reply_default_timeout_seconds
        return self.suspend(timeout)


class WaitNode(BaseNode):
    """Park for a fixed delay; the deadline is the normal continuation."""

    config_model = WaitConfig

    @property
    def type(self) -> str:
        return "WAIT"

    @property
    def description(self) -> str:
        return "Pause for a fixed amount of time"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: WaitConfig) -> NodeOutcome:
        return self.suspend(config.total_seconds)
