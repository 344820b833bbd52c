"""Media resolver that downloads referenced files over HTTP."""

from __future__ import annotations

import httpx

from ..core.exceptions import ExternalCallError


class HttpMediaResolver:
    """Fetches media bytes for SEND_MEDIA, refusing oversized files."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_bytes: int = 16 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_bytes = max_bytes
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=transport)

    async def resolve(self, reference: str) -> bytes:
        try:
            response = await self._client.get(reference)
        except httpx.HTTPError as e:
            raise ExternalCallError(f"Media download failed: {e}", target=reference) from e

        if not response.is_success:
            raise ExternalCallError(
                f"Media download failed: HTTP {response.status_code}",
                status_code=response.status_code,
                target=reference,
            )
        if len(response.content) > self._max_bytes:
            raise ExternalCallError(
                f"Media exceeds {self._max_bytes} bytes",
                target=reference,
            )
        return response.content

    async def close(self) -> None:
        await self._client.aclose()
