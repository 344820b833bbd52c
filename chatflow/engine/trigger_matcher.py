"""Trigger matcher - map an inbound event to workflow entry points."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .types import InboundEvent, NodeType, Workflow, WorkflowNode

logger = logging.getLogger(__name__)

SIGNAL_TRIGGER_TYPES = {
    "message": NodeType.TRIGGER_MESSAGE.value,
    "schedule": NodeType.TRIGGER_SCHEDULE.value,
    "manual": NodeType.TRIGGER_MANUAL.value,
}


@dataclass
class TriggerMatch:
    """A workflow and the trigger node that fired for an event."""

    workflow: Workflow
    trigger_node: WorkflowNode


class TriggerMatcher:
    """
    Scans active workflows for triggers satisfied by an event.

    Every matching workflow yields one match; within a workflow only the first
    satisfied trigger (declaration order) counts.
    """

    def match(self, event: InboundEvent, workflows: list[Workflow]) -> list[TriggerMatch]:
        matches: list[TriggerMatch] = []
        for workflow in workflows:
            if not workflow.is_active or workflow.tenant_id != event.tenant_id:
                continue
            if event.workflow_id is not None and workflow.id != event.workflow_id:
                continue

            for node in workflow.trigger_nodes():
                if self.matches(node, event):
                    matches.append(TriggerMatch(workflow=workflow, trigger_node=node))
                    break

        if not matches:
            logger.debug("No trigger matched %s event from %s", event.kind, event.contact_id)
        return matches

    def matches(self, node: WorkflowNode, event: InboundEvent) -> bool:
        if SIGNAL_TRIGGER_TYPES.get(event.kind) != node.type:
            return False

        session_filter = node.config.get("sessionId")
        if session_filter and session_filter != event.session_id:
            return False

        if node.type != NodeType.TRIGGER_MESSAGE.value:
            return True

        return self.match_text(
            event.text or "",
            str(node.config.get("pattern") or ""),
            node.config.get("matchType") or "contains",
        )

    def match_text(self, text: str, pattern: str, match_type: str) -> bool:
        """exact: case-sensitive equality; contains: case-insensitive; regex: unanchored search."""
        if match_type == "exact":
            return text == pattern
        if match_type == "regex":
            try:
                return re.search(pattern, text) is not None
            except re.error as e:
                logger.warning("Invalid trigger regex %r: %s", pattern, e)
                return False
        return pattern.lower() in text.lower()


# Singleton instance
trigger_matcher = TriggerMatcher()
