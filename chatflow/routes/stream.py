"""Server-Sent Events (SSE) route for real-time lifecycle events."""

from __future__ import annotations

import json
from typing import AsyncGenerator

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from ..core.dependencies import RuntimeDep, TenantDep
from ..engine.event_publisher import Subscription

router = APIRouter(prefix="/events")


async def _stream_events(request: Request, subscription: Subscription) -> AsyncGenerator[dict[str, str], None]:
    """Yield the tenant's lifecycle events until the client disconnects."""
    try:
        async for event in subscription:
            if await request.is_disconnected():
                break
            yield {"event": event.type.value, "data": json.dumps(event.to_dict(), default=str)}
    finally:
        subscription.close()


@router.get("/stream")
async def stream_events(request: Request, tenant_id: TenantDep, runtime: RuntimeDep) -> EventSourceResponse:
    """Stream execution lifecycle events of the tenant."""
    subscription = runtime.publisher.subscribe(tenant_id)
    return EventSourceResponse(_stream_events(request, subscription), ping=15)
