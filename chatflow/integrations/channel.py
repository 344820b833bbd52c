"""HTTP adapter for the messaging channel gateway."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.exceptions import ExternalCallError

logger = logging.getLogger(__name__)


class HttpChannelAdapter:
    """
    Posts outbound messages to a gateway that owns the channel sessions.

    Each send is `POST {base_url}/sessions/{session_id}/messages` with
    `{"to": contact_id, **payload}`. Delivery is at-least-once; no retries.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def send(self, session_id: str, contact_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"/sessions/{session_id}/messages"
        try:
            response = await self._client.post(url, json={"to": contact_id, **payload})
        except httpx.HTTPError as e:
            raise ExternalCallError(f"Channel gateway unreachable: {e}", target=url) from e

        if not response.is_success:
            raise ExternalCallError(
                f"Channel gateway rejected message: HTTP {response.status_code}",
                status_code=response.status_code,
                target=url,
            )

        logger.debug("Delivered %s message to %s", payload.get("type"), contact_id)
        try:
            return response.json()
        except ValueError:
            return {"status": response.status_code}

    async def close(self) -> None:
        await self._client.aclose()
