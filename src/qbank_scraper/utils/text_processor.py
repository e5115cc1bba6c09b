"""
Text Processing Utilities

This module provides centralized text processing functions for normalizing
scraped text, recognizing question links and finding dates in card text.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from ..constants import (
    DATE_PATTERN, EXCLUDED_PATH_SEGMENTS, MIN_QUESTION_LENGTH,
    QUESTION_PATH_PATTERN
)

_WHITESPACE_RE = re.compile(r'\s+')
_QUESTION_PATH_RE = re.compile(QUESTION_PATH_PATTERN)
_DATE_RE = re.compile(DATE_PATTERN)


class TextProcessor:
    """
    Handles text processing operations for scraped content.

    Provides methods for whitespace normalization, question link detection
    and date lookup. All methods are pure.
    """

    @staticmethod
    def clean_text(text: Optional[str]) -> str:
        """
        Collapse runs of whitespace into single spaces and trim.

        Args:
            text: Raw text, possibly None

        Returns:
            str: Normalized text ("" for None)
        """
        if not text:
            return ""
        return _WHITESPACE_RE.sub(' ', text).strip()

    @staticmethod
    def href_path(href: Optional[str]) -> str:
        """
        Reduce an href to its path component.

        Relative hrefs such as "/interview-questions/foo" are returned as-is
        (minus any query string or fragment); absolute URLs lose their scheme
        and host.
        """
        if not href:
            return ""
        return urlparse(href.strip()).path

    @staticmethod
    def href_host(href: Optional[str]) -> str:
        """
        Host of an absolute href, lower-cased and without a leading "www.".

        Relative hrefs have no host and give "".
        """
        if not href:
            return ""
        host = (urlparse(href.strip()).hostname or "").lower()
        return host[4:] if host.startswith("www.") else host

    @staticmethod
    def is_same_site(href: Optional[str], site_host: str) -> bool:
        """Relative hrefs and absolute hrefs on site_host belong to the site."""
        host = TextProcessor.href_host(href)
        return not host or not site_host or host == site_host

    @staticmethod
    def is_question_path(path: str) -> bool:
        """
        Check whether a path points at a single question page.

        Matches "/interview-questions/<slug>" with no further segments and
        rejects the position/category/company listing paths.

        Args:
            path: URL path (see href_path)

        Returns:
            bool: True for a question detail path
        """
        if not path or not _QUESTION_PATH_RE.match(path):
            return False

        slug = path.rsplit('/', 1)[-1].lower()
        if slug in EXCLUDED_PATH_SEGMENTS:
            return False

        for segment in EXCLUDED_PATH_SEGMENTS:
            if f'/{segment}/' in path:
                return False

        return True

    @staticmethod
    def is_valid_question_text(text: str, min_length: int = MIN_QUESTION_LENGTH) -> bool:
        """Link text must be longer than min_length to count as a question."""
        return len(TextProcessor.clean_text(text)) > min_length

    @staticmethod
    def find_date(text: Optional[str]) -> str:
        """
        Find the first "Mon D, YYYY" style date in text.

        Args:
            text: Text that may contain a date

        Returns:
            str: The matched date, or "" when there is none
        """
        if not text:
            return ""
        match = _DATE_RE.search(text)
        return TextProcessor.clean_text(match.group(0)) if match else ""

    @staticmethod
    def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
        """
        Truncate text to specified length with suffix.

        Args:
            text: Text to truncate
            max_length: Maximum length including suffix
            suffix: Suffix to add when truncating

        Returns:
            str: Truncated text
        """
        if not text or len(text) <= max_length:
            return text

        truncated_length = max_length - len(suffix)
        return text[:truncated_length] + suffix


def clean_text(text: Optional[str]) -> str:
    """Normalize whitespace in text."""
    return TextProcessor.clean_text(text)


def is_question_path(path: str) -> bool:
    """Check whether path points at a single question page."""
    return TextProcessor.is_question_path(path)
