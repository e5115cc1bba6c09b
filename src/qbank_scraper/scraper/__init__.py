"""
Scraper modules for the interview question bank.

Navigation (browser tab or HTTP fetch), page extraction and the pagination
loop that ties them together.
"""

from .base import BaseScraper
from .config import ConfigError, ScraperConfig
from .extractor import PageResult, extract
from .navigator import (
    BaseNavigator, FetchError, FetchNavigator, NavigationError,
    NoActiveTabError, TabNavigator, create_navigator
)
from .questionbank import QuestionBankScraper, scrape_company_questions

__all__ = [
    'BaseScraper',
    'BaseNavigator',
    'ConfigError',
    'FetchError',
    'FetchNavigator',
    'NavigationError',
    'NoActiveTabError',
    'PageResult',
    'QuestionBankScraper',
    'ScraperConfig',
    'TabNavigator',
    'create_navigator',
    'extract',
    'scrape_company_questions'
]
