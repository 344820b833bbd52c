"""HTTP Scrape node - load a page in a headless browser and extract content."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, TYPE_CHECKING

from .base import BaseNode
from ..core.exceptions import ExecutionCancelledError, ExternalCallError, NodeExecutionError
from ..schemas.node_config import HttpScrapeConfig

if TYPE_CHECKING:
    from ..engine.collaborators import BrowserDriver, BrowserPage
    from ..engine.types import NodeContext, NodeOutcome, WorkflowNode

logger = logging.getLogger(__name__)


class HttpScrapeNode(BaseNode):
    """
    Drive the browser collaborator: navigate, wait, run a script, extract.

    The whole interaction is bounded by `timeout` (ms). The stored result is
    {url, title, html, scriptResult, extracted, screenshot}.
    """

    config_model = HttpScrapeConfig

    @property
    def type(self) -> str:
        return "HTTP_SCRAPE"

    @property
    def description(self) -> str:
        return "Scrape a web page with a headless browser"

    async def execute(self, context: NodeContext, node: WorkflowNode, config: HttpScrapeConfig) -> NodeOutcome:
        browser = context.services.browser
        if browser is None:
            raise NodeExecutionError("No headless browser driver configured", node_id=node.id)

        timeout_ms = config.timeout or context.settings.scrape_default_timeout_ms
        try:
            result = await context.cancel_token.guard(
                asyncio.wait_for(self._scrape(browser, config, timeout_ms), timeout=timeout_ms / 1000)
            )
        except asyncio.TimeoutError as e:
            raise ExternalCallError(f"Scrape timed out after {timeout_ms}ms", target=config.url) from e
        except (ExternalCallError, ExecutionCancelledError):
            raise
        except Exception as e:
            raise ExternalCallError(f"Scrape failed: {e}", target=config.url) from e

        context.state.output[config.save_response_as] = result
        return self.next()

    async def _scrape(self, browser: BrowserDriver, config: HttpScrapeConfig, timeout_ms: int) -> dict[str, Any]:
        wait_spec: dict[str, Any] = {
            "waitFor": config.wait_for,
            "waitSelector": config.wait_selector,
            "waitTimeout": config.wait_timeout or timeout_ms,
            "headers": {str(k): str(v) for k, v in config.headers.items()},
        }
        if config.viewport:
            wait_spec["viewport"] = {"width": config.viewport.width, "height": config.viewport.height}

        page = await browser.navigate(config.url, wait_spec)
        try:
            return await self._collect(browser, page, config)
        finally:
            await page.close()

    async def _collect(self, browser: BrowserDriver, page: BrowserPage, config: HttpScrapeConfig) -> dict[str, Any]:
        script_result = None
        if config.execute_script:
            script_result = await page.evaluate(config.execute_script)

        extracted = None
        if config.extract_selector:
            extracted = await browser.extract(
                page,
                config.extract_selector,
                config.extract_type,
                config.extract_attribute,
            )

        screenshot = None
        if config.screenshot:
            screenshot = base64.b64encode(await page.screenshot()).decode("ascii")

        return {
            "url": config.url,
            "title": await page.title(),
            "html": await page.content(),
            "scriptResult": script_result,
            "extracted": extracted,
            "screenshot": screenshot,
        }
