"""
Question card extraction for the interview question bank.

`extract` is a pure function over an HTML snapshot of a listing page. It is
run against whatever the navigator captured (the rendered DOM of a browser tab
or a raw HTTP response body) and can be tested against static HTML fixtures.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from ..constants import BASE_URL, CARD_CLASS_MARKER, CARD_SELECTORS, QUESTION_PATH_PREFIX
from ..utils.deduplication import dedupe_rows
from ..utils.text_processor import TextProcessor

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    """Rows read from one listing page, plus diagnostics about the page."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    title: str = ""
    url: str = ""

    @property
    def count(self) -> int:
        return len(self.rows)


def _has_card_class(tag: Tag) -> bool:
    return tag.name == 'div' and CARD_CLASS_MARKER in ' '.join(tag.get('class') or [])


def find_question_links(soup: BeautifulSoup, site_host: str = "") -> List[Tag]:
    """
    Return the anchors that link to a single question page.

    Navigation, pagination and position/category/company links share the
    "/interview-questions/" prefix, so the path shape and a minimum text
    length are both required. Absolute links must point at site_host.
    """
    links = []
    for anchor in soup.find_all('a', href=True):
        if not TextProcessor.is_same_site(anchor['href'], site_host):
            continue
        path = TextProcessor.href_path(anchor['href'])
        if not path.startswith(QUESTION_PATH_PREFIX):
            continue
        if not TextProcessor.is_question_path(path):
            continue
        if not TextProcessor.is_valid_question_text(anchor.get_text()):
            continue
        links.append(anchor)
    return links


def find_card(link: Tag) -> Optional[Tag]:
    """Closest ancestor grouping a question's link, position, category and date."""
    return (
        link.find_parent(_has_card_class)
        or link.find_parent('article')
        or link.find_parent('li')
        or link.parent
    )


def _select_text(card: Tag, selector: str) -> str:
    element = card.select_one(selector)
    return TextProcessor.clean_text(element.get_text()) if element else ""


def extract_date(card: Tag) -> str:
    """
    Read the posting date of a card.

    Prefers the dedicated date element; otherwise scans descendant text in
    document order for the first "Mon D, YYYY" date.
    """
    date = _select_text(card, CARD_SELECTORS['date'])
    if date:
        return date

    for element in card.find_all(CARD_SELECTORS['date_candidates']):
        date = TextProcessor.find_date(element.get_text(' '))
        if date:
            return date
    return ""


def extract_row(link: Tag) -> Optional[Dict[str, str]]:
    """Build a row for one question link, or None when it has no card."""
    question = TextProcessor.clean_text(link.get_text())
    card = find_card(link)
    if card is None or not question:
        return None

    return {
        'Position': _select_text(card, CARD_SELECTORS['position']),
        'Category': _select_text(card, CARD_SELECTORS['category']),
        'Question': question,
        'Date': extract_date(card)
    }


def extract(html: str, url: str = "") -> PageResult:
    """
    Extract question rows from a listing page.

    Args:
        html: Document snapshot
        url: Final URL of the page. Its host is the only one absolute
            question links may point at (the default listing host when
            url is empty)

    Returns:
        PageResult with rows deduplicated within the page
    """
    soup = BeautifulSoup(html or "", 'html.parser')
    title = TextProcessor.clean_text(soup.title.get_text()) if soup.title else ""

    rows = []
    site_host = TextProcessor.href_host(url) or TextProcessor.href_host(BASE_URL)
    for link in find_question_links(soup, site_host):
        row = extract_row(link)
        if row:
            rows.append(row)

    unique = dedupe_rows(rows)
    if len(unique) < len(rows):
        logger.debug(f"Dropped {len(rows) - len(unique)} duplicate cards on {url or 'page'}")

    return PageResult(rows=unique, title=title, url=url)
