"""In-memory contact tag/label storage."""

from __future__ import annotations


class ContactTagStore:
    """Value lists keyed by (tenant, namespace, contact)."""

    def __init__(self) -> None:
        self._values: dict[tuple[str, str, str], list[str]] = {}

    async def get(self, tenant_id: str, namespace: str, contact_id: str) -> list[str]:
        return list(self._values.get((tenant_id, namespace, contact_id), []))

    async def put(self, tenant_id: str, namespace: str, contact_id: str, values: list[str]) -> None:
        self._values[(tenant_id, namespace, contact_id)] = list(values)
