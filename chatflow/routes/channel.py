"""Inbound channel routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ..core.dependencies import TenantDep, get_conversation_service
from ..engine.types import InboundEvent, utcnow
from ..schemas.channel import DispatchResponse, InboundMessageRequest
from ..services.conversation_service import ConversationService

router = APIRouter(prefix="/channel")


ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]


@router.post("/messages", response_model=DispatchResponse)
async def receive_message(
    message: InboundMessageRequest,
    tenant_id: TenantDep,
    service: ConversationServiceDep,
) -> DispatchResponse:
    """
    Handle a message received on a channel session.

    Resumes the contact's waiting execution, or starts every workflow whose
    message trigger matches.
    """
    event = InboundEvent(
        kind="message",
        tenant_id=tenant_id,
        session_id=message.session_id,
        contact_id=message.contact_id,
        text=message.text,
        timestamp=message.timestamp or utcnow(),
        payload=dict(message.payload),
    )
    result = await service.handle_message(event)
    return DispatchResponse(action=result.action, execution_ids=result.execution_ids)
