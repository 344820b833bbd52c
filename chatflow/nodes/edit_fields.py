"""Edit Fields node - set variables from templated values or JSON."""

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

from .base import BaseNode
from ..core.exceptions import ExpressionEvaluationError
from ..schemas.node_config import EditFieldsConfig

if TYPE_CHECKING:
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode


class EditFieldsNode(BaseNode):
    """
    Merge assignments into `variables`.

    Manual mode applies `fields` in order (dotted names create nested
    objects), JSON mode merges `jsonData`. The node result recorded under
    `output[saveAs]` holds only the assigned fields unless
    `includeOtherFields` is set, in which case it carries every variable.
    """

    config_model = EditFieldsConfig

    @property
    def type(self) -> str:
        return "EDIT_FIELDS"

    @property
    def description(self) -> str:
        return "Set or change variables"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: EditFieldsConfig) -> NodeOutcome:
        assigned: dict[str, Any] = {}

        if config.mode == "json":
            data = config.json_data
            if isinstance(data, str):
                try:
                    data = json.loads(data) if data.strip() else {}
                except json.JSONDecodeError as e:
                    raise ExpressionEvaluationError(f"Invalid JSON data: {e}") from e
            if not isinstance(data, dict):
                raise ExpressionEvaluationError("JSON data must be an object")
            assigned.update(data)
        else:
            for field in config.fields:
                self._set_nested_value(assigned, field.name, self._coerce(field.value, field.type, field.name))

        variables = context.state.variables
        for key, value in assigned.items():
            variables[key] = value

        result = dict(variables) if config.include_other_fields else assigned
        context.state.output[config.save_as] = result
        return self.next()

    def _coerce(self, value: Any, target: str, name: str) -> Any:
        """Convert a resolved value to the declared field type."""
        try:
            if target == "auto" or value is None:
                return value
            if target == "string":
                if isinstance(value, (dict, list, bool)):
                    return json.dumps(value)
                return str(value)
            if target == "number":
                if isinstance(value, bool):
                    raise ValueError("boolean is not a number")
                number = float(value)
                return int(number) if number.is_integer() else number
            if target == "boolean":
                if isinstance(value, bool):
                    return value
                text = str(value).strip().lower()
                if text in ("true", "1", "yes"):
                    return True
                if text in ("false", "0", "no", ""):
                    return False
                raise ValueError(f"cannot read {value!r} as boolean")
            if target in ("json", "array"):
                parsed = json.loads(value) if isinstance(value, str) else value
                if target == "array" and not isinstance(parsed, list):
                    raise ValueError("value is not an array")
                return parsed
        except (TypeError, ValueError) as e:
            raise ExpressionEvaluationError(
                f'Cannot convert field "{name}" to {target}: {e}'
            ) from e
        return value

    def _set_nested_value(self, obj: dict[str, Any], path: str, value: Any) -> None:
        """Set value at nested path."""
        keys = path.split(".")
        current = obj
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value
