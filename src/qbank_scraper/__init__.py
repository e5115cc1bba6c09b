"""
Interview Question Bank Scraper Package

Walks a company's paginated listing on the interview question bank, extracts
position, category, question and date for every question card, deduplicates
the rows and exports them to an Excel workbook.
"""

__version__ = "1.0.0"

from .scraper.questionbank import QuestionBankScraper, scrape_company_questions
from .scraper.extractor import PageResult, extract
from .utils.excel_handler import ExcelHandler, to_filename

__all__ = [
    'QuestionBankScraper',
    'PageResult',
    'ExcelHandler',
    'extract',
    'scrape_company_questions',
    'to_filename'
]
