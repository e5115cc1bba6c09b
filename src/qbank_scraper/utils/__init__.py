"""
Utility modules for the question bank scraper.

This package contains utility classes and functions for:
- Text normalization and question link detection
- Row deduplication
- Excel export
- Data validation
- Session metrics
"""

from .text_processor import TextProcessor, clean_text, is_question_path
from .deduplication import assign_serial_numbers, dedup_key, dedupe_rows
from .excel_handler import ExcelHandler, to_filename
from .validation import DataValidator, validate_company_name
from .monitoring import ScrapingMetrics

__all__ = [
    'TextProcessor',
    'ExcelHandler',
    'DataValidator',
    'ScrapingMetrics',
    'assign_serial_numbers',
    'clean_text',
    'dedup_key',
    'dedupe_rows',
    'is_question_path',
    'to_filename',
    'validate_company_name'
]
