"""In-memory execution log storage."""

from __future__ import annotations

from collections import defaultdict, deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine.types import ExecutionLogRecord


class ExecutionLogStore:
    """Keeps the most recent log records of each execution."""

    def __init__(self, max_records_per_execution: int = 500) -> None:
        self._logs: dict[str, deque[ExecutionLogRecord]] = defaultdict(
            lambda: deque(maxlen=max_records_per_execution)
        )

    async def add(self, record: ExecutionLogRecord) -> None:
        self._logs[record.execution_id].append(record)

    async def list_for_execution(self, tenant_id: str, execution_id: str) -> list[ExecutionLogRecord]:
        return [r for r in self._logs.get(execution_id, ()) if r.tenant_id == tenant_id]

    async def delete_for_execution(self, execution_id: str) -> int:
        removed = self._logs.pop(execution_id, None)
        return len(removed) if removed else 0
