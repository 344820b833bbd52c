"""HTTP Request node - one bounded call to an external API."""

from __future__ import annotations

import json
import logging
from typing import Any, TYPE_CHECKING

import httpx

from .base import BaseNode
from ..core.exceptions import ExternalCallError
from ..schemas.node_config import HttpRequestConfig

if TYPE_CHECKING:
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH", "DELETE")


class HttpRequestNode(BaseNode):
    """HTTP Request node - stores {statusCode, headers, body} under saveResponseAs."""

    config_model = HttpRequestConfig

    @property
    def type(self) -> str:
        return "HTTP_REQUEST"

    @property
    def description(self) -> str:
        return "Make an HTTP request to an external API"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: HttpRequestConfig) -> NodeOutcome:
        timeout_ms = config.timeout or context.settings.http_default_timeout_ms
        headers = {str(k): self._header_value(v) for k, v in config.headers.items()}
        params = {str(k): v for k, v in config.query_params.items() if v is not None}

        request_kwargs: dict[str, Any] = {"headers": headers, "params": params}
        if config.method in BODY_METHODS and config.body not in (None, ""):
            body = config.body
            if isinstance(body, str):
                try:
                    body = json.loads(body)
                except json.JSONDecodeError:
                    pass  # Keep as raw text
            if isinstance(body, (dict, list)):
                request_kwargs["json"] = body
            else:
                request_kwargs["content"] = str(body)

        async with httpx.AsyncClient(
            timeout=timeout_ms / 1000,
            follow_redirects=config.follow_redirects,
            verify=not config.ignore_ssl,
            transport=context.services.http_transport,
        ) as client:
            try:
                response = await context.cancel_token.guard(
                    client.request(config.method, config.url, **request_kwargs)
                )
            except httpx.TimeoutException as e:
                raise ExternalCallError(
                    f"HTTP request timed out after {timeout_ms}ms", target=config.url
                ) from e
            except httpx.HTTPError as e:
                raise ExternalCallError(f"HTTP request failed: {e}", target=config.url) from e

        if not response.is_success:
            raise ExternalCallError(
                f"HTTP {response.status_code} from {config.method} {config.url}",
                status_code=response.status_code,
                target=config.url,
            )

        context.state.output[config.save_response_as] = {
            "statusCode": response.status_code,
            "headers": dict(response.headers),
            "body": self._parse_body(response, config.response_type),
        }
        logger.debug("%s %s -> %s", config.method, config.url, response.status_code)
        return self.next()

    def _header_value(self, value: Any) -> str:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return "" if value is None else str(value)

    def _parse_body(self, response: httpx.Response, response_type: str) -> Any:
        if response_type == "text":
            return response.text
        try:
            return response.json()
        except ValueError:
            return response.text
