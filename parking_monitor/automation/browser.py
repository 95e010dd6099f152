"""
Browser Manager - Launches one headless Chromium session per attempt

A session is always acquired through BrowserManager.session(), which closes
the browser process on every exit path. Session methods never block past
their configured timeout; Playwright timeouts and errors surface as
TransientError.
"""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Optional
from playwright.async_api import (
    async_playwright,
    Browser,
    ElementHandle,
    Page,
    Playwright,
    Error as PlaywrightError,
)
from loguru import logger

from ..app.config import settings as default_settings, Settings, SelectorSet
from .errors import LaunchError, TransientError


class BrowserSession:
    """Narrow step-by-step API over a single Playwright page"""

    def __init__(self, page: Page, settings: Settings, used_fallback: bool = False):
        self._page = page
        self.settings = settings
        self.used_fallback = used_fallback

    async def _bounded(self, awaitable, what: str, timeout_ms: Optional[int] = None):
        """Await a page operation, converting timeouts and page errors"""
        timeout = (timeout_ms or self.settings.action_timeout_ms) / 1000
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            raise TransientError(f"Timed out after {timeout:.0f}s: {what}")
        except PlaywrightError as e:
            raise TransientError(f"{what} failed: {e.message}") from e

    async def navigate(self, url: str, wait_until: str = "networkidle"):
        """Load a URL and wait for the given readiness state"""
        timeout_ms = self.settings.navigation_timeout_ms
        # Playwright enforces its own timeout; the outer bound adds headroom
        await self._bounded(
            self._page.goto(url, wait_until=wait_until, timeout=timeout_ms),
            f"navigate to {url}",
            timeout_ms + 5000,
        )

    async def wait_ready(self, state: str = "networkidle"):
        timeout_ms = self.settings.navigation_timeout_ms
        await self._bounded(
            self._page.wait_for_load_state(state, timeout=timeout_ms),
            f"wait for {state}",
            timeout_ms + 5000,
        )

    async def settle(self, ms: int):
        """Give client-side rendering time to catch up"""
        if ms > 0:
            await asyncio.sleep(ms / 1000)

    async def query_one(self, selectors: SelectorSet) -> Optional[ElementHandle]:
        """First element matching any selector, in priority order"""
        for selector in selectors:
            element = await self._bounded(
                self._page.query_selector(selector), f"query {selectors.name}"
            )
            if element:
                logger.debug(f"{selectors.name} matched with: {selector}")
                return element
        return None

    async def query_all(self, selectors: SelectorSet) -> AsyncIterator[ElementHandle]:
        """Elements matching each selector in turn; reads the live page every call"""
        for selector in selectors:
            elements = await self._bounded(
                self._page.query_selector_all(selector), f"query all {selectors.name}"
            )
            for element in elements:
                yield element

    async def read_text(self, element: ElementHandle) -> str:
        text = await self._bounded(element.inner_text(), "read element text")
        return text or ""

    async def read_attribute(self, element: ElementHandle, name: str) -> Optional[str]:
        return await self._bounded(element.get_attribute(name), f"read attribute {name}")

    async def click(self, element: ElementHandle):
        timeout_ms = self.settings.action_timeout_ms
        await self._bounded(element.click(timeout=timeout_ms), "click", timeout_ms + 2000)

    async def fill(self, element: ElementHandle, value: str):
        timeout_ms = self.settings.action_timeout_ms
        await self._bounded(element.fill(value, timeout=timeout_ms), "fill", timeout_ms + 2000)

    async def page_text(self) -> str:
        """Visible text of the whole page, or "" while the page is navigating"""
        try:
            return await self._bounded(
                self._page.inner_text("body", timeout=self.settings.action_timeout_ms),
                "read page text",
                self.settings.action_timeout_ms + 2000,
            )
        except TransientError as e:
            logger.debug(f"Page text unavailable: {e}")
            return ""

    async def screenshot(self, name: str = "screenshot") -> Optional[Path]:
        """Take screenshot and save to file"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.settings.screenshots_dir / f"{name}_{timestamp}.png"

        try:
            self.settings.screenshots_dir.mkdir(parents=True, exist_ok=True)
            await self._bounded(
                self._page.screenshot(path=str(filepath), full_page=True), "screenshot"
            )
            logger.info(f"Screenshot saved: {filepath}")
            return filepath
        except (TransientError, OSError) as e:
            logger.error(f"Failed to take screenshot: {e}")
            return None


class BrowserManager:
    """Manages browser lifecycle, one process per session"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    @asynccontextmanager
    async def session(self, executable_path: Optional[str] = None) -> AsyncIterator[BrowserSession]:
        """Open a session, falling back to the default Chromium once if the given path fails"""
        playwright = await async_playwright().start()
        browser: Optional[Browser] = None
        try:
            browser, used_fallback = await self._launch(playwright, executable_path)
            context = await browser.new_context(viewport={"width": 1280, "height": 900})
            page = await context.new_page()
            page.set_default_timeout(self.settings.action_timeout_ms)
            yield BrowserSession(page, self.settings, used_fallback)
        finally:
            if browser:
                try:
                    await browser.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser: {e}")
            await playwright.stop()
            logger.debug("Browser session closed")

    async def _launch(self, playwright: Playwright, executable_path: Optional[str]):
        """Launch Chromium; returns (browser, used_fallback)"""
        executable_path = executable_path or self.settings.browser_executable
        try:
            logger.debug(f"Launching browser (executable: {executable_path or 'default'})")
            browser = await playwright.chromium.launch(
                headless=self.settings.headless,
                executable_path=executable_path,
            )
            return browser, False
        except PlaywrightError as e:
            if not executable_path:
                raise LaunchError(f"Browser failed to launch: {e.message}") from e
            logger.warning(f"Launch with {executable_path} failed, trying default Chromium: {e.message}")

        try:
            browser = await playwright.chromium.launch(headless=self.settings.headless)
            return browser, True
        except PlaywrightError as e:
            raise LaunchError(f"Browser failed to launch: {e.message}") from e
