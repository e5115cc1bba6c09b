"""Tests for pagination, stop conditions and location restore."""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
from playwright.async_api import Error as PlaywrightError

from qbank_scraper.scraper import questionbank
from qbank_scraper.scraper.config import ScraperConfig
from qbank_scraper.scraper.navigator import NavigationError, TabNavigator
from qbank_scraper.scraper.questionbank import QuestionBankScraper, scrape_company_questions
from qbank_scraper.utils.monitoring import ScrapingMetrics

from .conftest import EMPTY_PAGE, ORIGINAL_URL, FakeNavigator, page_with_questions

ZERO_DELAYS = {'settle': 0, 'retry': 0, 'retry_increment': 0, 'inter_page': 0}


def make_config(**scraper_settings) -> ScraperConfig:
    return ScraperConfig.from_dict({'scraper': {'delays': ZERO_DELAYS, **scraper_settings}})


def run_scrape(scraper: QuestionBankScraper, company: str = "Acme"):
    return asyncio.run(scraper.scrape_company(company))


def test_stops_at_first_empty_page_and_restores(config, statuses):
    pages = {n: page_with_questions(n) for n in (1, 2, 3)}
    navigator = FakeNavigator(config, pages)
    scraper = QuestionBankScraper(config, navigator, reporter=statuses.append)

    rows = run_scrape(scraper)

    assert [navigator_url.rsplit('=', 1)[-1] for navigator_url in navigator.visited] == ['1', '2', '3', '4']
    assert len(rows) == 6
    assert [row['Sl No'] for row in rows] == [1, 2, 3, 4, 5, 6]
    assert rows[0]['Question'] == "Page 1 question number 1?"
    assert rows[-1]['Question'] == "Page 3 question number 2?"
    assert navigator.restored_to == ORIGINAL_URL
    assert navigator.current_url == ORIGINAL_URL


def test_single_empty_page_yields_no_rows(config):
    navigator = FakeNavigator(config, {})
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    assert rows == []
    assert len(navigator.visited) == 1
    assert navigator.restored_to == ORIGINAL_URL


def test_empty_threshold_allows_gaps():
    config = make_config(empty_page_threshold=2)
    pages = {1: page_with_questions(1), 3: page_with_questions(3)}
    navigator = FakeNavigator(config, pages)
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    # 1 rows, 2 empty, 3 rows (streak reset), 4 and 5 empty
    assert len(navigator.visited) == 5
    assert [row['Question'] for row in rows] == [
        "Page 1 question number 1?", "Page 1 question number 2?",
        "Page 3 question number 1?", "Page 3 question number 2?"
    ]


def test_safety_cap_limits_pages_visited():
    config = make_config(max_pages=3)
    pages = {n: page_with_questions(n, count=1) for n in range(1, 11)}
    navigator = FakeNavigator(config, pages)
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    assert len(navigator.visited) == 3
    assert len(rows) == 3
    assert navigator.restored_to == ORIGINAL_URL


def test_default_safety_cap_is_200_pages(config):
    pages = {n: page_with_questions(n, count=1) for n in range(1, 251)}
    navigator = FakeNavigator(config, pages)
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    assert len(navigator.visited) == 200
    assert len(rows) == 200
    assert rows[-1]['Sl No'] == 200


def test_restores_location_when_navigation_fails(config):
    pages = {n: page_with_questions(n) for n in (1, 2, 3)}
    navigator = FakeNavigator(config, pages, fail_on_page=2)
    scraper = QuestionBankScraper(config, navigator)

    with pytest.raises(NavigationError):
        run_scrape(scraper)

    assert navigator.restored_to == ORIGINAL_URL
    assert navigator.current_url == ORIGINAL_URL


def test_no_restore_without_original_location(config):
    navigator = FakeNavigator(config, {1: page_with_questions(1)}, original_url="")
    scraper = QuestionBankScraper(config, navigator)

    run_scrape(scraper)

    assert navigator.restored_to is None


def test_load_timeout_counts_as_empty_page(config, statuses):
    pages = {n: page_with_questions(n) for n in (1, 2, 3)}
    navigator = FakeNavigator(config, pages, timeouts={2})
    scraper = QuestionBankScraper(config, navigator, reporter=statuses.append)

    rows = run_scrape(scraper)

    assert len(navigator.visited) == 2
    assert len(rows) == 2
    # Only page 1 was read; the timed out page is never extracted
    assert navigator.content_calls == 1
    assert "Page 2 did not finish loading, treating it as empty" in statuses


def test_load_timeout_with_threshold_continues():
    config = make_config(empty_page_threshold=2)
    pages = {n: page_with_questions(n) for n in (1, 2, 3)}
    navigator = FakeNavigator(config, pages, timeouts={2})
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    assert len(navigator.visited) == 5
    assert len(rows) == 4


def test_extraction_retries_until_page_renders(statuses):
    config = make_config(extraction_attempts=5)
    pages = {1: [EMPTY_PAGE, EMPTY_PAGE, page_with_questions(1)]}
    navigator = FakeNavigator(config, pages)
    metrics = ScrapingMetrics()
    scraper = QuestionBankScraper(config, navigator, reporter=statuses.append, metrics=metrics)

    rows = run_scrape(scraper)

    assert len(rows) == 2
    assert "Page 1 looks empty, retrying (2/5)..." in statuses
    assert "Page 1 looks empty, retrying (3/5)..." in statuses
    # page 1: three reads; page 2: five reads before giving up
    assert navigator.content_calls == 3 + 5
    assert metrics.get_summary()['extraction_retries'] == 2 + 4


def test_single_attempt_does_not_wait_for_rendering():
    config = make_config(extraction_attempts=1)
    pages = {1: [EMPTY_PAGE, page_with_questions(1)]}
    navigator = FakeNavigator(config, pages)
    scraper = QuestionBankScraper(config, navigator)

    rows = run_scrape(scraper)

    assert rows == []
    assert navigator.content_calls == 1


def test_duplicates_across_pages_are_removed(config):
    pages = {1: page_with_questions(1), 2: page_with_questions(1, count=3)}
    navigator = FakeNavigator(config, pages)
    metrics = ScrapingMetrics()
    scraper = QuestionBankScraper(config, navigator, metrics=metrics)

    rows = run_scrape(scraper)

    assert len(navigator.visited) == 3
    assert [row['Question'] for row in rows] == [
        "Page 1 question number 1?", "Page 1 question number 2?", "Page 1 question number 3?"
    ]
    assert [row['Sl No'] for row in rows] == [1, 2, 3]
    assert metrics.get_summary()['duplicates_removed'] == 2


def test_page_urls_encode_company_and_use_tab_page_param(config):
    navigator = FakeNavigator(config, {1: page_with_questions(1)})
    scraper = QuestionBankScraper(config, navigator)

    run_scrape(scraper, company="  Acme & Sons/Co  ")

    assert navigator.visited == [
        "https://interviewquestionbank.com/interview-questions?company=Acme%20%26%20Sons%2FCo&pageNo=1",
        "https://interviewquestionbank.com/interview-questions?company=Acme%20%26%20Sons%2FCo&pageNo=2"
    ]


def test_fetch_navigator_type_uses_page_param():
    config = ScraperConfig.from_dict({'navigator': {'type': 'fetch'}})
    scraper = QuestionBankScraper(config, FakeNavigator(config))

    assert scraper.build_page_url("Acme", 3) == (
        "https://interviewquestionbank.com/interview-questions?company=Acme&page=3"
    )


def test_explicit_page_param_wins():
    config = ScraperConfig.from_dict({'scraper': {'page_param': 'p', 'base_url': 'https://qb.test/list'}})
    scraper = QuestionBankScraper(config, FakeNavigator(config))

    assert scraper.build_page_url("Acme", 7) == "https://qb.test/list?company=Acme&p=7"


@pytest.mark.parametrize("company", ["", "   ", "\t\n"])
def test_empty_company_is_rejected_before_navigation(config, company):
    navigator = FakeNavigator(config, {1: page_with_questions(1)})
    scraper = QuestionBankScraper(config, navigator)

    with pytest.raises(ValueError, match="Please enter a company name."):
        run_scrape(scraper, company=company)

    assert navigator.visited == []
    assert navigator.restored_to is None


def test_reporter_receives_phase_statuses(config, statuses):
    navigator = FakeNavigator(config, {1: page_with_questions(1)})
    scraper = QuestionBankScraper(config, navigator, reporter=statuses.append)

    run_scrape(scraper)

    assert statuses == [
        "Opening page 1...",
        "Extracting page 1...",
        "Page 1: 2 rows (2 so far)",
        "Opening page 2...",
        "Extracting page 2...",
        "Restoring original page..."
    ]


def test_metrics_count_pages(config):
    navigator = FakeNavigator(config, {1: page_with_questions(1)}, timeouts={2})
    metrics = ScrapingMetrics()
    scraper = QuestionBankScraper(config, navigator, metrics=metrics)

    run_scrape(scraper)

    summary = metrics.get_summary()
    assert summary['pages_visited'] == 2
    assert summary['load_timeouts'] == 1
    assert summary['empty_pages'] == 1
    assert summary['rows_extracted'] == 2


def test_scrape_company_questions_opens_and_closes_navigator(config, monkeypatch):
    created = []

    def fake_create_navigator(cfg):
        navigator = FakeNavigator(cfg, {1: page_with_questions(1)})
        created.append(navigator)
        return navigator

    monkeypatch.setattr(questionbank, 'create_navigator', fake_create_navigator)

    rows = asyncio.run(scrape_company_questions("Acme", config))

    assert len(rows) == 2
    assert created[0].opened and created[0].closed
    assert created[0].restored_to == ORIGINAL_URL


def test_navigator_is_closed_after_failure(config, monkeypatch):
    created = []

    def fake_create_navigator(cfg):
        navigator = FakeNavigator(cfg, {}, fail_on_page=1)
        created.append(navigator)
        return navigator

    monkeypatch.setattr(questionbank, 'create_navigator', fake_create_navigator)

    with pytest.raises(NavigationError):
        asyncio.run(scrape_company_questions("Acme", config))

    assert created[0].closed


def listing_tab(config: ScraperConfig, unreachable_page: int) -> TabNavigator:
    """TabNavigator over a fake page; one page number fails at the network level."""
    page = MagicMock()
    page.url = ORIGINAL_URL

    def page_no_of(url):
        values = parse_qs(urlparse(url).query).get(config.page_param)
        return int(values[0]) if values else None

    async def goto(url, **kwargs):
        if page_no_of(url) == unreachable_page:
            raise PlaywrightError(f"net::ERR_CONNECTION_RESET at {url}")
        page.url = url

    async def content():
        return page_with_questions(page_no_of(page.url))

    page.goto = AsyncMock(side_effect=goto)
    page.wait_for_load_state = AsyncMock()
    page.content = AsyncMock(side_effect=content)

    tab = TabNavigator(config)
    tab.page = page
    return tab


def test_network_error_ends_series_and_keeps_earlier_rows(config, statuses):
    tab = listing_tab(config, unreachable_page=3)
    scraper = QuestionBankScraper(config, tab, reporter=statuses.append)

    rows = run_scrape(scraper)

    assert [row['Question'] for row in rows] == [
        "Page 1 question number 1?", "Page 1 question number 2?",
        "Page 2 question number 1?", "Page 2 question number 2?"
    ]
    assert "Page 3 did not finish loading, treating it as empty" in statuses
    assert tab.current_url == ORIGINAL_URL


def test_failed_restore_does_not_discard_rows(config):
    tab = listing_tab(config, unreachable_page=2)
    tab.page.wait_for_load_state = AsyncMock(side_effect=[None, PlaywrightError("Target page has been closed")])
    scraper = QuestionBankScraper(config, tab)

    rows = run_scrape(scraper)

    assert len(rows) == 2
