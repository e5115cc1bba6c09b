"""
Navigators drive a browsing context through the listing pages.

Two implementations share one contract:

- TabNavigator controls a Playwright browser tab, either in a browser it
  launches or in a running Chrome it attaches to over CDP.
- FetchNavigator downloads each page with aiohttp and never renders it.

Both are async context managers that acquire the browser or HTTP session on
entry and release it on exit. preserve_location() returns the tab to where it
was before a scraping run, however the run ends.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import aiohttp  # type: ignore
from bs4 import BeautifulSoup
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright  # type: ignore
from playwright.async_api import Error as PlaywrightError  # type: ignore
from playwright.async_api import TimeoutError as PlaywrightTimeoutError  # type: ignore
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential  # type: ignore

from ..utils.text_processor import TextProcessor
from .config import ScraperConfig


class NavigationError(Exception):
    """Raised when the browsing context cannot be driven."""


class NoActiveTabError(NavigationError):
    """Raised when attaching to a browser that has no open tab."""


class FetchError(NavigationError):
    """Raised when a page request returns an HTTP error status."""

    def __init__(self, status: int, url: str):
        self.status = status
        self.url = url
        super().__init__(f"HTTP {status} while fetching {url}")


class BaseNavigator(ABC):
    """Common navigator behaviour: settings, logging and location restore."""

    def __init__(self, config: ScraperConfig):
        self.config = config
        self.settings = config['navigator']
        self.logger = logging.getLogger(self.__class__.__name__)

    async def __aenter__(self) -> 'BaseNavigator':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def load_timeout_ms(self) -> float:
        return self.settings['load_timeout_ms']

    @abstractmethod
    async def open(self) -> None:
        """Acquire the browsing context."""

    @abstractmethod
    async def close(self) -> None:
        """Release the browsing context."""

    @property
    @abstractmethod
    def current_url(self) -> str:
        """Location the context is currently showing."""

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Start navigating to url."""

    @abstractmethod
    async def wait_until_loaded(self, timeout_ms: Optional[float] = None) -> bool:
        """Wait for the current navigation to finish; False on timeout."""

    @abstractmethod
    async def content(self) -> str:
        """Snapshot of the current document's HTML."""

    @abstractmethod
    async def title(self) -> str:
        """Title of the current document ("" when there is none)."""

    async def restore(self, url: str) -> None:
        """Send the context back to url."""
        await self.goto(url)
        await self.wait_until_loaded()

    @asynccontextmanager
    async def preserve_location(self) -> AsyncIterator[str]:
        """
        Remember the current location and restore it on exit.

        Yields:
            The original location ("" when there is none)
        """
        original_url = self.current_url
        self.logger.debug(f"Original location: {original_url or '(none)'}")
        try:
            yield original_url
        finally:
            if original_url:
                self.logger.info(f"Restoring original location: {original_url}")
                try:
                    await self.restore(original_url)
                except (PlaywrightError, NavigationError) as e:
                    # Must not mask the loop's own exception or its rows
                    self.logger.warning(f"Could not restore {original_url}: {e}")


class TabNavigator(BaseNavigator):
    """
    Drives a single Playwright page, the "tab".

    With navigator.cdp_url set, attaches to a running Chrome and uses its
    first open page, so the user's own tab is navigated and later restored.
    Otherwise launches Chromium and opens a fresh page.
    """

    def __init__(self, config: ScraperConfig):
        super().__init__(config)
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self._navigation_failed = False

    async def open(self) -> None:
        """Start Playwright and acquire the tab."""
        self._playwright = await async_playwright().start()
        try:
            cdp_url = self.settings.get('cdp_url')
            if cdp_url:
                self.logger.info(f"Attaching to running browser at {cdp_url}")
                self.browser = await self._playwright.chromium.connect_over_cdp(cdp_url)
                pages = [page for context in self.browser.contexts for page in context.pages]
                if not pages:
                    raise NoActiveTabError("No active tab available.")
                self.page = pages[0]
            else:
                self.browser = await self._playwright.chromium.launch(
                    headless=self.settings.get('headless', True)
                )
                self.context = await self.browser.new_context(
                    user_agent=self.settings.get('user_agent')
                )
                self.page = await self.context.new_page()
            self.logger.info("Browser tab ready")
        except Exception:
            await self.close()
            raise

    async def close(self) -> None:
        """Close the browser (or disconnect from it) and stop Playwright."""
        if self.browser:
            try:
                await self.browser.close()
                self.logger.info("Browser closed successfully")
            except PlaywrightError as e:
                self.logger.error(f"Error closing browser: {e}")
            self.browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        self.page = None
        self.context = None

    def _require_page(self) -> Page:
        if self.page is None:
            raise NoActiveTabError("No active tab available.")
        return self.page

    @property
    def current_url(self) -> str:
        return self.page.url if self.page else ""

    async def goto(self, url: str) -> None:
        """
        Point the tab at url.

        Returns once the navigation is committed; load completion is
        checked separately by wait_until_loaded. A navigation that cannot
        commit within the load timeout, or that fails at the network level
        (connection reset, DNS failure), is reported as a failed load so the
        page counts as empty.
        """
        page = self._require_page()
        self._navigation_failed = False
        try:
            await page.goto(url, wait_until='commit', timeout=self.load_timeout_ms)
        except PlaywrightTimeoutError:
            self.logger.warning(f"Navigation to {url} did not commit within {self.load_timeout_ms}ms")
            self._navigation_failed = True
        except PlaywrightError as e:
            self.logger.warning(f"Navigation to {url} failed: {e}")
            self._navigation_failed = True

    async def wait_until_loaded(self, timeout_ms: Optional[float] = None) -> bool:
        """
        Wait until the tab reports that loading is complete.

        Uses the browser's load event or polls document.readyState,
        depending on navigator.load_detection.

        Args:
            timeout_ms: Maximum wait, defaults to navigator.load_timeout_ms

        Returns:
            True when loaded, False when the timeout elapsed
        """
        if self._navigation_failed:
            return False

        timeout_ms = timeout_ms or self.load_timeout_ms
        if self.settings.get('load_detection') == 'poll':
            return await self._poll_ready_state(timeout_ms)

        page = self._require_page()
        try:
            await page.wait_for_load_state('load', timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            self.logger.warning(f"Timed out after {timeout_ms}ms waiting for page load")
            return False

    async def _poll_ready_state(self, timeout_ms: float) -> bool:
        page = self._require_page()
        interval = self.settings['poll_interval_ms'] / 1000
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000

        while True:
            try:
                if await page.evaluate('document.readyState') == 'complete':
                    return True
            except PlaywrightError as e:
                # The execution context is replaced while the page navigates
                self.logger.debug(f"readyState not available yet: {e}")

            if loop.time() >= deadline:
                self.logger.warning(f"Timed out after {timeout_ms}ms polling document.readyState")
                return False
            await asyncio.sleep(interval)

    async def content(self) -> str:
        return await self._require_page().content()

    async def title(self) -> str:
        return await self._require_page().title()


class FetchNavigator(BaseNavigator):
    """
    Fetches pages over plain HTTP with aiohttp.

    There is no tab to restore and no client-side rendering; a page counts
    as loaded when its response body arrived within the load timeout.
    """

    def __init__(self, config: ScraperConfig):
        super().__init__(config)
        self.session: Optional[aiohttp.ClientSession] = None
        self._url = ""
        self._html = ""
        self._loaded = False

    async def open(self) -> None:
        headers = {}
        if self.settings.get('user_agent'):
            headers['User-Agent'] = self.settings['user_agent']
        self.session = aiohttp.ClientSession(headers=headers)
        self.logger.info("HTTP session opened")

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("HTTP session closed")

    @property
    def current_url(self) -> str:
        return self._url

    async def goto(self, url: str) -> None:
        """
        Download url.

        Raises:
            FetchError: If the server answers with an HTTP error status
        """
        if self.session is None:
            raise NavigationError("HTTP session is not open")

        self._url = url
        self._html = ""
        self._loaded = False
        try:
            self._html, self._url = await self._fetch(url)
            self._loaded = True
        except asyncio.TimeoutError:
            self.logger.warning(f"Timed out after {self.load_timeout_ms}ms fetching {url}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(aiohttp.ClientConnectionError),
        reraise=True
    )
    async def _fetch(self, url: str):
        timeout = aiohttp.ClientTimeout(total=self.load_timeout_ms / 1000)
        self.logger.debug(f"GET {url}")
        async with self.session.get(url, timeout=timeout) as response:
            if response.status >= 400:
                raise FetchError(response.status, url)
            html = await response.text()
            self.logger.debug(f"Fetched {len(html)} characters from {response.url}")
            return html, str(response.url)

    async def wait_until_loaded(self, timeout_ms: Optional[float] = None) -> bool:
        return self._loaded

    async def content(self) -> str:
        return self._html

    async def title(self) -> str:
        soup = BeautifulSoup(self._html, 'html.parser')
        return TextProcessor.clean_text(soup.title.get_text()) if soup.title else ""

    async def restore(self, url: str) -> None:
        self.logger.debug("Fetch navigator has no tab to restore")


def create_navigator(config: ScraperConfig) -> BaseNavigator:
    """Build the navigator selected by navigator.type."""
    if config.navigator_type == 'fetch':
        return FetchNavigator(config)
    return TabNavigator(config)
