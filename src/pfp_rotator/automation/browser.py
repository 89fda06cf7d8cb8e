"""Browser tab handling for the rotation scheduler (Playwright async API)."""

import asyncio
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import BrowserContext, Page, Playwright, async_playwright

from pfp_rotator.automation.selectors import PROFILE_URL_FRAGMENT

logger = logging.getLogger(__name__)


class BrowserTabs:
    """
    Lazily launched persistent Chromium profile.

    A persistent profile keeps the site login between runs; the first
    find_or_open() call launches the browser.
    """

    def __init__(self, profile_dir: Path, headless: bool = False, navigation_timeout: float = 60.0):
        self.profile_dir = Path(profile_dir)
        self.headless = headless
        self.navigation_timeout = navigation_timeout
        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()

    async def _ensure_context(self) -> BrowserContext:
        async with self._lock:
            if self._context is None:
                if self._playwright is not None:
                    # Left over from a context the user closed
                    await self._playwright.stop()
                    self._playwright = None
                self.profile_dir.mkdir(parents=True, exist_ok=True)
                self._playwright = await async_playwright().start()
                context = await self._playwright.chromium.launch_persistent_context(
                    str(self.profile_dir),
                    headless=self.headless,
                    viewport={'width': 1440, 'height': 900}
                )
                context.set_default_navigation_timeout(self.navigation_timeout * 1000)
                context.on("close", self._on_context_closed)
                self._context = context
                logger.info(f"Launched browser with profile {self.profile_dir}")
            return self._context

    def _on_context_closed(self, context: BrowserContext) -> None:
        if context is self._context:
            logger.warning("Browser window closed; it will be relaunched on the next tick")
            self._context = None

    async def find_or_open(self, url: str) -> Page:
        """
        Return a loaded tab on the target site, opening one if needed.

        An existing tab on the same host is reused; it is navigated to
        ``url`` when it is not already on a profile page.
        """
        context = await self._ensure_context()
        host = urlparse(url).netloc

        page = next((p for p in context.pages if host and host in p.url), None)
        if page is None:
            logger.info(f"Opening new tab at {url}")
            page = await context.new_page()
            await page.goto(url, wait_until="load")
            return page

        await page.bring_to_front()
        if PROFILE_URL_FRAGMENT not in page.url:
            logger.info(f"Navigating existing tab from {page.url} to {url}")
            await page.goto(url, wait_until="load")
        else:
            await page.wait_for_load_state("load")
        return page

    async def close(self) -> None:
        if self._context is not None:
            context, self._context = self._context, None
            await context.close()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
