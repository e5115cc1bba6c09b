"""Shared fixtures for the question bank scraper tests."""

from typing import Dict, Iterable, List, Optional, Union
from urllib.parse import parse_qs, urlparse

import pytest

from qbank_scraper.scraper.config import ScraperConfig
from qbank_scraper.scraper.navigator import BaseNavigator, NavigationError

ORIGINAL_URL = "https://example.com/dashboard"


def make_card(slug: str, question: str, position: str = "Backend Engineer",
              category: str = "System Design", date: str = "Jan 5, 2024") -> str:
    """HTML for one question card, shaped like the live listing markup."""
    position_link = (f'<a href="/interview-questions/position/{position.lower().replace(" ", "-")}">'
                     f'{position}</a>' if position else '')
    category_link = (f'<a href="/interview-questions/category/{category.lower().replace(" ", "-")}">'
                     f'{category}</a>' if category else '')
    date_line = f'<p class="text-xs text-gray-500">{date}</p>' if date else ''
    return f"""
    <div class="rounded-lg border p-4 shadow-sm">
        <div class="flex gap-2">{position_link}{category_link}</div>
        <h3><a href="/interview-questions/{slug}">{question}</a></h3>
        {date_line}
    </div>
    """


def make_page(cards: Iterable[str] = (), title: str = "Interview Questions") -> str:
    """Full listing page around some cards, with nav and pagination links."""
    return f"""<!DOCTYPE html>
<html>
<head><title>{title}</title></head>
<body>
    <nav>
        <a href="/interview-questions">All questions</a>
        <a href="/interview-questions/company/acme">Acme</a>
    </nav>
    <main>{''.join(cards)}</main>
    <footer><a href="/interview-questions?company=Acme&amp;pageNo=2">Next page</a></footer>
</body>
</html>
"""


SAMPLE_CARD_HTML = """<!DOCTYPE html>
<html>
<head><title>Acme interview questions</title></head>
<body>
  <div class="rounded-lg border">
    <a href="/interview-questions/position/backend">Backend Engineer</a>
    <a href="/interview-questions/category/system-design">System Design</a>
    <a href="/interview-questions/design-a-cache">How would you design a distributed cache</a>
    <p class="text-xs">Mar 14, 2024</p>
  </div>
</body>
</html>
"""

EMPTY_PAGE = make_page([], title="No results")


def page_with_questions(page_no: int, count: int = 2) -> str:
    cards = [
        make_card(f"question-{page_no}-{i}", f"Page {page_no} question number {i}?")
        for i in range(1, count + 1)
    ]
    return make_page(cards)


Snapshot = Union[str, List[str]]


class FakeNavigator(BaseNavigator):
    """
    In-memory navigator serving canned HTML per page number.

    A page given as a list returns successive snapshots on successive
    content() calls, which simulates client-side rendering catching up.
    """

    def __init__(self, config: ScraperConfig, pages: Optional[Dict[int, Snapshot]] = None,
                 timeouts: Iterable[int] = (), fail_on_page: Optional[int] = None,
                 original_url: str = ORIGINAL_URL):
        super().__init__(config)
        self.pages = pages or {}
        self.timeouts = set(timeouts)
        self.fail_on_page = fail_on_page
        self._url = original_url
        self.current_page: Optional[int] = None
        self.visited: List[str] = []
        self.restored_to: Optional[str] = None
        self.content_calls = 0
        self._reads = 0
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    @property
    def current_url(self) -> str:
        return self._url

    async def goto(self, url: str) -> None:
        self.visited.append(url)
        self._url = url
        self._reads = 0
        query = parse_qs(urlparse(url).query)
        self.current_page = int(query[self.config.page_param][0])
        if self.current_page == self.fail_on_page:
            raise NavigationError(f"Tab crashed on page {self.current_page}")

    async def wait_until_loaded(self, timeout_ms=None) -> bool:
        return self.current_page not in self.timeouts

    async def content(self) -> str:
        self.content_calls += 1
        snapshot = self.pages.get(self.current_page, EMPTY_PAGE)
        if isinstance(snapshot, list):
            snapshot = snapshot[min(self._reads, len(snapshot) - 1)]
        self._reads += 1
        return snapshot

    async def title(self) -> str:
        return f"Listing page {self.current_page}" if self.current_page else ""

    async def restore(self, url: str) -> None:
        self.restored_to = url
        self._url = url


@pytest.fixture()
def config() -> ScraperConfig:
    """Default settings with every delay set to zero."""
    return ScraperConfig.from_dict({
        'scraper': {
            'delays': {'settle': 0, 'retry': 0, 'retry_increment': 0, 'inter_page': 0}
        }
    })


@pytest.fixture()
def statuses() -> List[str]:
    return []
