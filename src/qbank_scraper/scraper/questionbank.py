import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_incrementing  # type: ignore

from ..constants import STATUS_MESSAGES
from ..utils.deduplication import assign_serial_numbers, dedupe_rows
from ..utils.monitoring import ScrapingMetrics
from .base import BaseScraper, Reporter
from .config import ScraperConfig
from .extractor import PageResult, extract
from .navigator import BaseNavigator, create_navigator


class QuestionBankScraper(BaseScraper):
    """
    Walks a company's paginated question listing and collects every question.

    Pages are loaded one at a time through the navigator. A page that yields
    no rows (after the configured extraction attempts) extends the empty
    streak; reaching empty_page_threshold ends the series, as does the
    max_pages safety cap. The navigator's original location is restored
    however the loop exits.
    """

    def __init__(self, config: ScraperConfig, navigator: BaseNavigator,
                 reporter: Optional[Reporter] = None,
                 metrics: Optional[ScrapingMetrics] = None):
        super().__init__(config, reporter)
        self.navigator = navigator
        self.metrics = metrics or ScrapingMetrics()

        settings = config['scraper']
        self.base_url = settings['base_url']
        self.max_pages = settings['max_pages']
        self.empty_page_threshold = settings['empty_page_threshold']
        self.extraction_attempts = settings['extraction_attempts']

    def build_page_url(self, company: str, page_no: int) -> str:
        """URL of one listing page for a company."""
        return (f"{self.base_url}?company={quote(company.strip(), safe='')}"
                f"&{self.config.page_param}={page_no}")

    async def scrape_company(self, company: str) -> List[Dict[str, Any]]:
        """
        Scrape all listing pages for a company.

        Args:
            company: Company name as typed by the user

        Returns:
            Deduplicated rows in first-seen order, numbered with "Sl No"

        Raises:
            ValueError: If the company name is empty
        """
        company = company.strip()
        if not company:
            raise ValueError(STATUS_MESSAGES['missing_company'])

        self.logger.info("=" * 60)
        self.logger.info(f"SCRAPING QUESTIONS FOR {company!r}")
        self.logger.info("=" * 60)
        self.logger.info(f"Pagination: max {self.max_pages} pages, stop after "
                         f"{self.empty_page_threshold} empty page(s), "
                         f"{self.extraction_attempts} extraction attempt(s) per page")

        all_rows: List[Dict[str, Any]] = []
        page_no = 1
        empty_streak = 0

        async with self.navigator.preserve_location():
            while True:
                result = await self.scrape_page(company, page_no)

                if result.count == 0:
                    empty_streak += 1
                    self.logger.info(f"Page {page_no} is empty (streak {empty_streak}/"
                                     f"{self.empty_page_threshold})")
                    if empty_streak >= self.empty_page_threshold:
                        self.logger.info("Reached the end of the listing")
                        break
                else:
                    empty_streak = 0
                    all_rows.extend(result.rows)
                    self.report(STATUS_MESSAGES['page_done'].format(
                        page_no=page_no, count=result.count, total=len(all_rows)))

                if page_no >= self.max_pages:
                    self.logger.warning(f"Stopping at the {self.max_pages} page safety cap")
                    break

                page_no += 1
                await self._pause(self.config.delay('inter_page'), "between pages")

            self.report(STATUS_MESSAGES['restoring'])

        unique_rows = dedupe_rows(all_rows)
        self.metrics.record_deduplication(len(all_rows), len(unique_rows))
        self.logger.info(f"Collected {len(all_rows)} rows over {page_no} pages, "
                         f"{len(unique_rows)} unique")

        return assign_serial_numbers(unique_rows)

    async def scrape_page(self, company: str, page_no: int) -> PageResult:
        """
        Load one listing page and extract its rows.

        A page that does not finish loading within the timeout yields an
        empty result instead of an error.
        """
        url = self.build_page_url(company, page_no)
        self.report(STATUS_MESSAGES['opening'].format(page_no=page_no))
        self.logger.debug(f"Page {page_no} URL: {url}")

        started = time.monotonic()
        await self.navigator.goto(url)
        loaded = await self.navigator.wait_until_loaded()
        self.metrics.record_page_visited(time.monotonic() - started, loaded)

        if not loaded:
            self.report(STATUS_MESSAGES['timeout'].format(page_no=page_no))
            self.metrics.record_page_rows(0)
            return PageResult(url=url)

        await self._pause(self.config.delay('settle'), "settle")
        self.report(STATUS_MESSAGES['extracting'].format(page_no=page_no))

        result = await self._extract_with_retries(page_no)
        self.metrics.record_page_rows(result.count)
        self.logger.debug(f"Page {page_no} ({result.title or 'untitled'}): {result.count} rows")
        return result

    async def _extract_with_retries(self, page_no: int) -> PageResult:
        """Re-read the page while it renders no rows, up to extraction_attempts reads."""

        def before_sleep(retry_state) -> None:
            self.metrics.record_extraction_retry()
            self.report(STATUS_MESSAGES['retrying'].format(
                page_no=page_no,
                attempt=retry_state.attempt_number + 1,
                attempts=self.extraction_attempts))

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.extraction_attempts),
            wait=wait_incrementing(start=self.config.delay('retry'),
                                   increment=self.config.delay('retry_increment')),
            retry=retry_if_result(lambda result: result.count == 0),
            before_sleep=before_sleep,
            retry_error_callback=lambda retry_state: retry_state.outcome.result()
        )
        return await retrying(self._read_page)

    async def _read_page(self) -> PageResult:
        html = await self.navigator.content()
        return extract(html, url=self.navigator.current_url)


async def scrape_company_questions(company: str, config: ScraperConfig,
                                   reporter: Optional[Reporter] = None,
                                   metrics: Optional[ScrapingMetrics] = None) -> List[Dict[str, Any]]:
    """Open the configured navigator, scrape a company and release the navigator."""
    async with create_navigator(config) as navigator:
        scraper = QuestionBankScraper(config, navigator, reporter=reporter, metrics=metrics)
        return await scraper.scrape_company(company)
