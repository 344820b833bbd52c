"""Contact tag and label service."""

from __future__ import annotations

import logging
from typing import Protocol

from ..engine.collaborators import TagAction

logger = logging.getLogger(__name__)


class ContactValueStore(Protocol):
    async def get(self, tenant_id: str, namespace: str, contact_id: str) -> list[str]:
        ...

    async def put(self, tenant_id: str, namespace: str, contact_id: str, values: list[str]) -> None:
        ...


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


def apply_tag_action(current: list[str], action: TagAction, values: list[str]) -> list[str]:
    """Apply one mutation to an ordered value set."""
    if action == "add":
        return _dedupe([*current, *values])
    if action == "remove":
        removed = set(values)
        return [v for v in current if v not in removed]
    if action == "set":
        return _dedupe(values)
    if action == "clear":
        return []
    raise ValueError(f"Unknown tag action: {action}")


class ContactTagService:
    """TagService over a (tenant, namespace, contact) keyed value store."""

    def __init__(self, store: ContactValueStore, namespace: str = "tags") -> None:
        self._store = store
        self._namespace = namespace

    async def mutate(
        self,
        tenant_id: str,
        contact_id: str,
        action: TagAction,
        values: list[str],
    ) -> list[str]:
        current = await self._store.get(tenant_id, self._namespace, contact_id)
        updated = apply_tag_action(current, action, values)
        if updated != current:
            await self._store.put(tenant_id, self._namespace, contact_id, updated)
        logger.debug("%s %s for contact %s: %s", self._namespace, action, contact_id, updated)
        return updated

    async def list(self, tenant_id: str, contact_id: str) -> list[str]:
        return await self._store.get(tenant_id, self._namespace, contact_id)
