"""Activation-time validation of workflow graphs."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from croniter import croniter
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError
from .types import NodeType, Workflow

if TYPE_CHECKING:
    from .node_registry import NodeRegistryClass


def _is_template(value: object) -> bool:
    return isinstance(value, str) and "{{" in value


def validate_workflow(workflow: Workflow, registry: NodeRegistryClass) -> None:
    """
    Reject graphs that cannot run.

    Checks unique node ids, known node types, edge endpoints, node configs,
    GOTO_NODE targets, trigger presence, and regex trigger patterns. Config
    fields holding a {{ }} template are only checked at run time.
    """
    seen: set[str] = set()
    for node in workflow.nodes:
        if not node.id:
            raise ValidationError("Node id is required")
        if node.id in seen:
            raise ValidationError(f"Duplicate node id: {node.id}", node_id=node.id)
        seen.add(node.id)
        if not registry.has(node.type):
            raise ValidationError(f"Unknown node type: {node.type}", field="type", node_id=node.id)

    edge_ids: set[str] = set()
    for edge in workflow.edges:
        if edge.id in edge_ids:
            raise ValidationError(f"Duplicate edge id: {edge.id}", field="edges")
        edge_ids.add(edge.id)
        for endpoint in (edge.source, edge.target):
            if endpoint not in seen:
                raise ValidationError(
                    f"Edge {edge.id} references unknown node: {endpoint}",
                    field="edges",
                )

    for node in workflow.nodes:
        _validate_config(workflow, node.id, node.type, node.config, registry)

    triggers = workflow.trigger_nodes()
    if not triggers:
        raise ValidationError("Workflow needs at least one trigger node", field="nodes")
    for trigger in triggers:
        if not workflow.outgoing_edges(trigger.id):
            raise ValidationError(
                f"Trigger {trigger.id} has no outgoing edge",
                node_id=trigger.id,
            )


def _validate_config(
    workflow: Workflow,
    node_id: str,
    node_type: str,
    config: dict,
    registry: NodeRegistryClass,
) -> None:
    executor = registry.get(node_type)
    try:
        executor.config_model.model_validate(config or {})
    except PydanticValidationError as e:
        for error in e.errors():
            if _is_template(error.get("input")):
                continue
            location = ".".join(str(part) for part in error.get("loc", ()))
            raise ValidationError(
                f"Invalid config for node {node_id}: {location or 'config'}: {error.get('msg')}",
                field=location or None,
                node_id=node_id,
            ) from e

    if node_type == NodeType.WAIT_REPLY.value and config.get("onTimeout") == "GOTO_NODE":
        target = config.get("timeoutTargetNodeId")
        if workflow.get_node(target) is None:
            raise ValidationError(
                f"Timeout target node not found: {target}",
                field="timeoutTargetNodeId",
                node_id=node_id,
            )

    if node_type == NodeType.TRIGGER_MESSAGE.value and config.get("matchType") == "regex":
        try:
            re.compile(config.get("pattern") or "")
        except re.error as e:
            raise ValidationError(
                f"Invalid regex pattern for node {node_id}: {e}",
                field="pattern",
                node_id=node_id,
            ) from e

    if node_type == NodeType.TRIGGER_SCHEDULE.value and config.get("scheduleType") == "cron":
        if not croniter.is_valid(config.get("cronExpression") or ""):
            raise ValidationError(
                f"Invalid cron expression for node {node_id}",
                field="cronExpression",
                node_id=node_id,
            )
