"""Contact tag/label repository for database persistence."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.models import ContactTagModel
from ..engine.types import utcnow


class ContactTagRepository:
    """Stores one ordered value list per (tenant, namespace, contact)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, tenant_id: str, namespace: str, contact_id: str) -> list[str]:
        async with self._session_factory() as session:
            row = await session.get(ContactTagModel, (tenant_id, namespace, contact_id))
            return list(row.values) if row else []

    async def put(self, tenant_id: str, namespace: str, contact_id: str, values: list[str]) -> None:
        async with self._session_factory() as session:
            row = await session.get(ContactTagModel, (tenant_id, namespace, contact_id))
            if row is None:
                row = ContactTagModel(
                    tenant_id=tenant_id,
                    namespace=namespace,
                    contact_id=contact_id,
                )
                session.add(row)
            row.values = list(values)
            row.updated_at = utcnow()
            await session.commit()
