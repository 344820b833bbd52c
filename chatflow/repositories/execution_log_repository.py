"""Execution log repository for database persistence."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from ..db.models import ExecutionLogModel
from ..engine.types import ExecutionLogRecord
from ._utils import as_utc


class ExecutionLogRepository:
    """Append-only store of lifecycle events per execution."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, record: ExecutionLogRecord) -> None:
        async with self._session_factory() as session:
            session.add(
                ExecutionLogModel(
                    id=record.id,
                    tenant_id=record.tenant_id,
                    execution_id=record.execution_id,
                    node_id=record.node_id,
                    event_type=record.event_type,
                    data=record.data,
                    created_at=record.created_at,
                )
            )
            await session.commit()

    async def list_for_execution(self, tenant_id: str, execution_id: str) -> list[ExecutionLogRecord]:
        """Logs of one execution in the order they were written."""
        statement = (
            select(ExecutionLogModel)
            .where(ExecutionLogModel.tenant_id == tenant_id)
            .where(ExecutionLogModel.execution_id == execution_id)
            .order_by(ExecutionLogModel.created_at, ExecutionLogModel.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._to_record(log) for log in result.scalars().all()]

    async def delete_for_execution(self, execution_id: str) -> int:
        statement = select(ExecutionLogModel).where(ExecutionLogModel.execution_id == execution_id)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            logs = result.scalars().all()
            for log in logs:
                await session.delete(log)
            await session.commit()
            return len(logs)

    def _to_record(self, log: ExecutionLogModel) -> ExecutionLogRecord:
        return ExecutionLogRecord(
            id=log.id,
            tenant_id=log.tenant_id,
            execution_id=log.execution_id,
            node_id=log.node_id,
            event_type=log.event_type,
            data=log.data or {},
            created_at=as_utc(log.created_at),
        )
