"""Trigger nodes - entry points matched by the trigger matcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseNode
from ..schemas.node_config import (
    TriggerManualConfig,
    TriggerMessageConfig,
    TriggerScheduleConfig,
)

if TYPE_CHECKING:
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode


class _TriggerNode(BaseNode):
    """Triggers do nothing at run time; execution starts at their successor."""

    async def execute(self, context: NodeContext, node: WorkflowNode, config) -> NodeOutcome:
        return self.next()


class TriggerMessageNode(_TriggerNode):
    config_model = TriggerMessageConfig

    @property
    def type(self) -> str:
        return "TRIGGER_MESSAGE"

    @property
    def description(self) -> str:
        return "Start when an inbound message matches a pattern"


class TriggerScheduleNode(_TriggerNode):
    config_model = TriggerScheduleConfig

    @property
    def type(self) -> str:
        return "TRIGGER_SCHEDULE"

    @property
    def description(self) -> str:
        return "Start on a cron expression or a fixed interval"


class TriggerManualNode(_TriggerNode):
    config_model = TriggerManualConfig

    @property
    def type(self) -> str:
        return "TRIGGER_MANUAL"

    @property
    def description(self) -> str:
        return "Start from a manual run request"
