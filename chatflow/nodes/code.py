"""Code node - run a user script in the sandbox."""

from __future__ import annotations

import copy
from typing import Any, TYPE_CHECKING

from .base import BaseNode
from ..core.exceptions import NodeExecutionError, SandboxError
from ..schemas.node_config import CodeConfig

if TYPE_CHECKING:
    from ..engine.types import ExecutionContext, NodeContext, NodeOutcome, WorkflowNode

WRITABLE_ROOTS = ("variables", "output")


class CodeNode(BaseNode):
    """
    Code node - execute custom Python in the RestrictedPython sandbox.

    The script sees `variables`, `input`, `output` and `globals` (copies) and
    reports back by assigning `result`. In runOnceForEachItem mode it also
    sees `item` and `index`, runs once per element of the list at `itemsPath`,
    and each result replaces its element.

    With `saveResultAs` the result is stored under that variable; otherwise a
    dict result is merged into variables.
    """

    config_model = CodeConfig
    interpolate_config = False

    @property
    def type(self) -> str:
        return "CODE"

    @property
    def description(self) -> str:
        return "Run custom Python code in a sandbox"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: CodeConfig) -> NodeOutcome:
        sandbox = context.services.sandbox
        if sandbox is None:
            raise NodeExecutionError("No code sandbox configured", node_id=node.id)

        limits = {
            "timeout_seconds": context.settings.code_timeout_seconds,
            "cpu_seconds": context.settings.code_cpu_seconds,
            "memory_mb": context.settings.code_memory_limit_mb,
        }
        state = context.state
        base_input = copy.deepcopy(state.to_dict())

        if config.mode == "runOnceForEachItem":
            items = context.evaluator.lookup(config.items_path, state)
            if not isinstance(items, list):
                raise SandboxError(f"Expected a list at {config.items_path}, got {type(items).__name__}")

            results = []
            for index, item in enumerate(items):
                script_input = {**base_input, "item": item, "index": index}
                results.append(
                    await context.cancel_token.guard(sandbox.run(config.code, script_input, limits))
                )

            if config.save_result_as:
                state.variables[config.save_result_as] = results
            else:
                self._set_path(state, config.items_path, results)
            return self.next()

        result = await context.cancel_token.guard(sandbox.run(config.code, base_input, limits))
        if config.save_result_as:
            state.variables[config.save_result_as] = result
        elif isinstance(result, dict):
            state.variables.update(result)
        return self.next()

    def _set_path(self, state: ExecutionContext, path: str, value: Any) -> None:
        parts = [p for p in path.split(".") if p]
        if len(parts) < 2 or parts[0] not in WRITABLE_ROOTS:
            raise SandboxError(f"Cannot write results back to {path}")

        target: Any = getattr(state, parts[0])
        for part in parts[1:-1]:
            if not isinstance(target, dict):
                break
            target = target.setdefault(part, {})
        if not isinstance(target, dict):
            raise SandboxError(f"Cannot write results back to {path}")
        target[parts[-1]] = value
