"""Playwright-based headless browser session for script-rendered pages.

:class:`BrowserSession` owns one lazily-launched Chromium instance that is
shared by every browser fetch in the process.  Each fetch gets its own
browser context and page, closed when the fetch ends.  Any exception raised
during a fetch tears the browser down so the next fetch starts from a fresh
launch instead of a possibly corrupted session.

Download the Chromium browser binary once per environment::

    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from story_extractor.scraper.config import (
    BROWSER_LAUNCH_ARGS,
    BROWSER_SETTLE_MS,
    BROWSER_VIEWPORT,
)
from story_extractor.scraper.http_fetcher import FetchResult, random_user_agent

logger = logging.getLogger(__name__)


class BrowserSession:
    """Shared headless Chromium handle with reset-on-error semantics.

    Args:
        settle_ms: Extra wait after the network goes idle, for lazy content.
    """

    def __init__(self, *, settle_ms: int = BROWSER_SETTLE_MS) -> None:
        self._settle_ms = settle_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._launch_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    async def _get_browser(self) -> Any:
        async with self._launch_lock:
            if self._browser is None:
                from playwright.async_api import async_playwright  # noqa: PLC0415

                logger.info("scraper: launching headless browser")
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=True, args=list(BROWSER_LAUNCH_ARGS)
                )
            return self._browser

    @asynccontextmanager
    async def _page(self) -> AsyncIterator[Any]:
        browser = await self._get_browser()
        context = await browser.new_context(
            user_agent=random_user_agent(),
            viewport=BROWSER_VIEWPORT,
        )
        try:
            yield await context.new_page()
        finally:
            await context.close()

    async def fetch(self, url: str, *, timeout: float) -> FetchResult:
        """Render ``url`` and return the serialised DOM.

        Navigation waits for ``"networkidle"`` and then a fixed settle delay.

        Args:
            url: Target URL.
            timeout: Navigation timeout in seconds.

        Raises:
            Exception: Whatever Playwright raised.  The browser has already
                been reset when this propagates.
        """
        try:
            async with self._page() as page:
                response = await page.goto(
                    url, timeout=timeout * 1000, wait_until="networkidle"
                )
                await page.wait_for_timeout(self._settle_ms)
                html = await page.content()
                logger.info("scraper: rendered %s with browser (%d bytes)", url, len(html))
                return FetchResult(
                    html=html,
                    final_url=page.url,
                    status_code=response.status if response else 200,
                )
        except Exception:
            await self.reset()
            raise

    async def reset(self) -> None:
        """Tear the browser down; the next fetch relaunches it."""
        logger.warning("scraper: resetting headless browser")
        await self.close()

    async def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: browser close failed: %s", exc)
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:  # noqa: BLE001
                logger.debug("scraper: playwright stop failed: %s", exc)
