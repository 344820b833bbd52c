"""
RestrictedPython sandbox for CODE nodes.

Scripts are compiled with RestrictedPython and executed in a spawned child
process that runs under CPU-time and address-space rlimits. The parent
enforces a wall-clock timeout and kills the child on timeout or cancellation.
"""

from __future__ import annotations

import asyncio
import json
import logging
import multiprocessing
import operator
import time
from typing import Any

from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from ..core.exceptions import SandboxError

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.02

INPLACE_OPERATORS = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "|=": operator.ior,
    "&=": operator.iand,
}


def _inplacevar(op: str, x: Any, y: Any) -> Any:
    if op not in INPLACE_OPERATORS:
        raise SyntaxError(f"Operator {op} is not allowed")
    return INPLACE_OPERATORS[op](x, y)


def _build_globals(script_input: dict[str, Any]) -> dict[str, Any]:
    builtins = dict(safe_builtins)
    builtins.update(
        {
            "dict": dict,
            "list": list,
            "set": set,
            "sum": sum,
            "min": min,
            "max": max,
            "enumerate": enumerate,
            "any": any,
            "all": all,
            "map": map,
            "filter": filter,
            "reversed": reversed,
        }
    )
    return {
        "__builtins__": builtins,
        "__name__": "workflow_code",
        "_getitem_": default_guarded_getitem,
        "_getiter_": default_guarded_getiter,
        "_getattr_": safer_getattr,
        "_write_": full_write_guard,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_inplacevar_": _inplacevar,
        "json": json,
        **script_input,
    }


def _child_main(conn: Any, script: str, script_input: dict[str, Any], cpu_seconds: int, memory_mb: int) -> None:
    """Entry point of the sandbox process."""
    import resource

    try:
        resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds))
        memory_bytes = memory_mb * 1024 * 1024
        resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))

        byte_code = compile_restricted(script, "<workflow_code>", "exec")
        namespace = _build_globals(script_input)
        exec(byte_code, namespace)
        result = json.loads(json.dumps(namespace.get("result"), default=str))
        conn.send(("ok", result))
    except MemoryError:
        conn.send(("error", f"Memory limit of {memory_mb}MB exceeded"))
    except BaseException as e:  # report everything, the process exits next
        conn.send(("error", f"{e.__class__.__name__}: {e}"))
    finally:
        conn.close()


class RestrictedPythonSandbox:
    """Runs scripts with RestrictedPython inside a resource-limited subprocess."""

    def __init__(
        self,
        timeout_seconds: float = 5.0,
        cpu_seconds: int = 2,
        memory_mb: int = 256,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._cpu_seconds = cpu_seconds
        self._memory_mb = memory_mb
        self._mp = multiprocessing.get_context("spawn")

    def check(self, script: str) -> None:
        """Compile without running; raises SandboxError on restricted syntax."""
        try:
            compile_restricted(script, "<workflow_code>", "exec")
        except SyntaxError as e:
            raise SandboxError(f"Code compilation failed: {e}") from e

    async def run(self, script: str, input: dict[str, Any], limits: dict[str, Any] | None = None) -> Any:
        limits = limits or {}
        timeout = float(limits.get("timeout_seconds", self._timeout_seconds))
        cpu_seconds = int(limits.get("cpu_seconds", self._cpu_seconds))
        memory_mb = int(limits.get("memory_mb", self._memory_mb))

        self.check(script)

        parent_conn, child_conn = self._mp.Pipe(duplex=False)
        process = self._mp.Process(
            target=_child_main,
            args=(child_conn, script, input, cpu_seconds, memory_mb),
            daemon=True,
        )
        process.start()
        child_conn.close()

        deadline = time.monotonic() + timeout
        try:
            while not parent_conn.poll():
                if not process.is_alive() and not parent_conn.poll():
                    raise SandboxError(
                        f"Code process exited without a result (exit code {process.exitcode})"
                    )
                if time.monotonic() >= deadline:
                    raise SandboxError(f"Code execution timed out ({timeout:g} second limit)")
                await asyncio.sleep(POLL_INTERVAL_SECONDS)

            try:
                status, payload = parent_conn.recv()
            except EOFError as e:
                raise SandboxError("Code process exited without a result") from e
        finally:
            if process.is_alive():
                process.kill()
            process.join(timeout=1)
            parent_conn.close()

        if status != "ok":
            raise SandboxError(f"Code execution failed: {payload}")
        return payload
