"""Inbound channel event schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from .common import CamelModel


class InboundMessageRequest(CamelModel):
    """A message received from a contact on a channel session."""

    session_id: str = Field(..., min_length=1)
    contact_id: str = Field(..., min_length=1)
    text: str = ""
    timestamp: datetime | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class DispatchResponse(CamelModel):
    """What the engine did with an inbound event."""

    action: Literal["resumed", "started", "ignored"]
    execution_ids: list[str] = Field(default_factory=list)
