"""Headless browser driver for HTTP_SCRAPE, backed by Playwright."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)

# Playwright has a single network-idle state for both puppeteer variants
WAIT_UNTIL = {
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
    "load": "load",
    "domcontentloaded": "domcontentloaded",
    "selector": "load",
}


class PlaywrightPage:
    """A page together with the isolated browser context that owns it."""

    def __init__(self, page: Page, context: BrowserContext) -> None:
        self.page = page
        self._context = context

    async def evaluate(self, script: str) -> Any:
        # Scripts are function bodies and may `return` at top level
        return await self.page.evaluate(f"() => {{\n{script}\n}}")

    async def content(self) -> str:
        return await self.page.content()

    async def title(self) -> str:
        return await self.page.title()

    async def screenshot(self) -> bytes:
        return await self.page.screenshot(full_page=True)

    async def close(self) -> None:
        await self._context.close()


class PlaywrightBrowserDriver:
    """
    Launches one Chromium instance on first use and gives every scrape its
    own browser context, so headers and viewport never leak between pages.
    """

    def __init__(
        self,
        headless: bool = True,
        launcher: Callable[[], Any] = async_playwright,
    ) -> None:
        self._headless = headless
        self._launcher = launcher
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                self._playwright = await self._launcher().start()
                self._browser = await self._playwright.chromium.launch(headless=self._headless)
                logger.info("Launched headless Chromium (headless=%s)", self._headless)
            return self._browser

    async def navigate(self, url: str, wait_spec: dict[str, Any]) -> PlaywrightPage:
        browser = await self._ensure_browser()

        context_options: dict[str, Any] = {}
        if wait_spec.get("viewport"):
            context_options["viewport"] = wait_spec["viewport"]
        if wait_spec.get("headers"):
            context_options["extra_http_headers"] = wait_spec["headers"]

        context = await browser.new_context(**context_options)
        try:
            page = await context.new_page()
            wait_for = wait_spec.get("waitFor") or "load"
            timeout = wait_spec.get("waitTimeout")
            await page.goto(url, wait_until=WAIT_UNTIL.get(wait_for, "load"), timeout=timeout)
            if wait_for == "selector" and wait_spec.get("waitSelector"):
                await page.wait_for_selector(wait_spec["waitSelector"], timeout=timeout)
        except BaseException:
            await context.close()
            raise

        return PlaywrightPage(page, context)

    async def extract(
        self,
        page: PlaywrightPage,
        selector: str,
        extract_type: str,
        attribute: str | None = None,
    ) -> Any:
        """Read the first element matching `selector`; None when nothing matches."""
        element = await page.page.query_selector(selector)
        if element is None:
            return None
        if extract_type == "html":
            return await element.inner_html()
        if extract_type == "attribute":
            return await element.get_attribute(attribute or "")
        text = await element.text_content()
        return text.strip() if text is not None else None

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("Headless browser closed")
