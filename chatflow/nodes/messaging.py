"""Send nodes - deliver text, media, buttons and lists to the contact."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, TYPE_CHECKING

from .base import BaseNode
from ..core.exceptions import ExecutionCancelledError, ExternalCallError, NodeExecutionError
from ..schemas.node_config import (
    SendButtonsConfig,
    SendListConfig,
    SendMediaConfig,
    SendMessageConfig,
)

if TYPE_CHECKING:
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode

logger = logging.getLogger(__name__)


class _SendNode(BaseNode):
    """Shared delivery path: optional delay, then one send with no retry."""

    async def _deliver(self, context: NodeContext, delay_ms: int, payload: dict[str, Any]) -> dict[str, Any]:
        channel = context.services.channel
        if channel is None:
            raise NodeExecutionError("No messaging channel configured")

        if delay_ms > 0:
            await context.cancel_token.guard(asyncio.sleep(delay_ms / 1000))

        execution = context.execution
        try:
            result = await context.cancel_token.guard(
                channel.send(execution.session_id, execution.contact_id, payload)
            )
        except (ExternalCallError, ExecutionCancelledError):
            raise
        except Exception as e:
            raise ExternalCallError(f"Failed to send {payload.get('type')} message: {e}") from e

        logger.debug(
            "Sent %s to %s via session %s",
            payload.get("type"),
            execution.contact_id,
            execution.session_id,
        )
        return result or {}


class SendMessageNode(_SendNode):
    config_model = SendMessageConfig

    @property
    def type(self) -> str:
        return "SEND_MESSAGE"

    @property
    def description(self) -> str:
        return "Send a text message"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: SendMessageConfig) -> NodeOutcome:
        await self._deliver(context, config.delay, {"type": "text", "text": str(config.message)})
        return self.next()


class SendMediaNode(_SendNode):
    config_model = SendMediaConfig

    @property
    def type(self) -> str:
        return "SEND_MEDIA"

    @property
    def description(self) -> str:
        return "Send an image, video, audio or document"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: SendMediaConfig) -> NodeOutcome:
        payload: dict[str, Any] = {
            "type": "media",
            "mediaType": config.media_type,
            "caption": config.caption,
            "fileName": config.file_name,
        }

        resolver = context.services.media
        if resolver is None:
            payload["url"] = config.media_url
        else:
            try:
                data = await context.cancel_token.guard(resolver.resolve(config.media_url))
            except (ExternalCallError, ExecutionCancelledError):
                raise
            except Exception as e:
                raise ExternalCallError(f"Failed to load media: {e}", target=config.media_url) from e
            payload["data"] = base64.b64encode(data).decode("ascii")

        await self._deliver(context, config.delay, payload)
        return self.next()


class SendButtonsNode(_SendNode):
    config_model = SendButtonsConfig

    @property
    def type(self) -> str:
        return "SEND_BUTTONS"

    @property
    def description(self) -> str:
        return "Send a message with reply buttons"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: SendButtonsConfig) -> NodeOutcome:
        payload = {
            "type": "buttons",
            "text": config.message,
            "buttons": [{"id": b.id, "text": b.text} for b in config.buttons],
            "footer": config.footer,
        }
        await self._deliver(context, config.delay, payload)
        return self.next()


class SendListNode(_SendNode):
    config_model = SendListConfig

    @property
    def type(self) -> str:
        return "SEND_LIST"

    @property
    def description(self) -> str:
        return "Send an interactive list message"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: SendListConfig) -> NodeOutcome:
        payload = {
            "type": "list",
            "text": config.message,
            "buttonText": config.button_text,
            "title": config.title,
            "footer": config.footer,
            "sections": [
                {
                    "title": section.title,
                    "rows": [
                        {"id": row.id, "title": row.title, "description": row.description}
                        for row in section.rows
                    ],
                }
                for section in config.sections
            ],
        }
        await self._deliver(context, config.delay, payload)
        return self.next()
