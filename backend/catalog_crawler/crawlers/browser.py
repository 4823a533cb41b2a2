"""
Shared browser session backed by Playwright.

One persistent-profile context is launched per run so cookies and login
state are reused by every page. Pages are short-lived: each one is opened
through new_page() and closed on every exit path.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union
from playwright.async_api import async_playwright, BrowserContext, Page, Playwright
import logging

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    Persistent Playwright browser context.

    Usage:
        async with BrowserSession('.browser_profile', headless=True) as session:
            async with session.new_page() as page:
                await page.goto(url)
    """

    def __init__(
        self,
        profile_dir: Union[str, Path],
        headless: bool = False,
        cleanup_timeout: float = 5.0,
    ):
        """
        Initialize the browser session.

        Args:
            profile_dir: Directory holding the persistent browser profile
            headless: Run browser in headless mode
            cleanup_timeout: Seconds allowed for each teardown step
        """
        self.profile_dir = Path(profile_dir)
        self.headless = headless
        self.cleanup_timeout = cleanup_timeout
        self._playwright: Optional[Playwright] = None
        self._context: Optional[BrowserContext] = None

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser session is not started")
        return self._context

    async def start(self) -> BrowserContext:
        """Launch the persistent context if it is not running yet."""
        if self._context is not None:
            return self._context

        self.profile_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Launching browser (profile={self.profile_dir}, headless={self.headless})")
        try:
            self._playwright = await async_playwright().start()
            self._context = await self._playwright.chromium.launch_persistent_context(
                str(self.profile_dir),
                headless=self.headless,
            )
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            await self.close()
            raise
        return self._context

    @asynccontextmanager
    async def new_page(self) -> AsyncIterator[Page]:
        """Open an isolated page that is always closed afterwards."""
        page = await self.context.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as e:
                logger.debug(f"Error closing page: {e}")

    async def fetch(self, url: str) -> str:
        """
        Load a document through the browser and return its raw body.

        Used for sitemap XML so the request carries the session's cookies.

        Raises:
            Exception: On navigation failure or an error status
        """
        logger.debug(f"BrowserSession fetching: {url}")
        async with self.new_page() as page:
            response = await page.goto(url, wait_until='load')
            if response is None:
                raise Exception(f"No response for {url}")
            if response.status >= 400:
                raise Exception(f"HTTP {response.status} for {url}")
            return await response.text()

    async def close(self):
        """Close the context and stop Playwright, with timeouts to prevent hanging."""
        if self._context is not None:
            try:
                await asyncio.wait_for(self._context.close(), timeout=self.cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning("Context close timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error closing context: {e}")
            self._context = None

        if self._playwright is not None:
            try:
                await asyncio.wait_for(self._playwright.stop(), timeout=self.cleanup_timeout)
            except asyncio.TimeoutError:
                logger.warning("Playwright stop timed out, forcing cleanup")
            except Exception as e:
                logger.warning(f"Error stopping playwright: {e}")
            self._playwright = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
