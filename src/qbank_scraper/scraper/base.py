import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from .config import ScraperConfig

Reporter = Callable[[str], None]


class BaseScraper(ABC):
    def __init__(self, config: ScraperConfig, reporter: Optional[Reporter] = None):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self._reporter = reporter

    def report(self, message: str) -> None:
        """Publish a status line to the reporter and the log."""
        self.logger.info(message)
        if self._reporter:
            self._reporter(message)

    @abstractmethod
    async def scrape_company(self, company: str) -> List[Dict[str, Any]]:
        """Scrape every question listed for a company."""
        pass

    async def _pause(self, seconds: float, reason: str = "") -> None:
        """
        Sleep between steps to let the page render or to go easy on the site.

        Uses the configured delays from config['scraper']['delays']; a zero
        delay still yields to the event loop.
        """
        if seconds > 0:
            self.logger.debug(f"Waiting {seconds:.2f}s{f' ({reason})' if reason else ''}")
        await asyncio.sleep(max(seconds, 0))
