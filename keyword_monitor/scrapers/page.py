"""
Page Text Fetcher
=================

Renders the watched page in headless Chromium (Playwright) and returns its
visible text.

Every call launches its own browser and closes it on the way out, whether
the fetch succeeded, failed or was cancelled, so a failed attempt never
leaks a browser into the next one.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Browser, Page, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from ..config import FetchConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Browser launch, navigation, rendering or text extraction failed."""


class BrowserSession:
    """
    One headless browser with one page, as an async context manager.

    Usage:
        async with BrowserSession(config) as page:
            await page.goto(url)
    """

    def __init__(self, config: FetchConfig):
        self.config = config
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None

    async def __aenter__(self) -> Page:
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self.page

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Launch Chromium and open a page with resource blocking."""
        logger.debug("Starting browser...")
        try:
            self._playwright = await async_playwright().start()
        except Exception as e:
            raise FetchError(f"Browser driver failed to start: {e}") from e
        self.browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=self.config.chromium_args,
            timeout=self.config.launch_timeout_sec * 1000,
        )
        self.page = await self.browser.new_page(viewport=self.config.viewport)
        await self.page.route("**/*", self._route)
        logger.debug("Browser started")

    async def _route(self, route: Route):
        if route.request.resource_type in self.config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def close(self):
        """Clean up browser"""
        try:
            if self.browser:
                await self.browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing browser: {e}")
        finally:
            self.browser = None
            self.page = None
            if self._playwright:
                try:
                    await self._playwright.stop()
                except PlaywrightError as e:
                    logger.warning(f"Error stopping browser driver: {e}")
                finally:
                    self._playwright = None
        logger.debug("Browser closed")


class PageFetcher:
    """Fetches the rendered text of a page, one fresh browser per call."""

    def __init__(self, config: FetchConfig = None):
        self.config = config or FetchConfig()

    async def fetch_text(self, url: str) -> str:
        """
        Load `url` and return `document.body.innerText`.

        Raises:
            FetchError: If the browser fails at any stage
        """
        try:
            async with BrowserSession(self.config) as page:
                await page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=self.config.navigation_timeout_sec * 1000,
                )
                # Let client-side rendering finish
                await asyncio.sleep(self.config.settle_delay_sec)
                text = await page.evaluate("() => document.body ? document.body.innerText : ''")
        except PlaywrightError as e:
            raise FetchError(str(e).splitlines()[0] if str(e) else type(e).__name__) from e
        except OSError as e:
            raise FetchError(f"Browser launch failed: {e}") from e

        return text or ""
