"""
Constants and default configuration values for the question bank scraper.

This module centralizes URLs, selectors, patterns, export columns and the
default settings so the scraper, extractor and exporter agree on them.
"""

# Target site
BASE_URL = "https://interviewquestionbank.com/interview-questions"

# Query parameter carrying the page number, per navigator type
PAGE_PARAMS = {
    'tab': 'pageNo',
    'fetch': 'page'
}

# Question link detection
QUESTION_PATH_PREFIX = '/interview-questions/'
QUESTION_PATH_PATTERN = r'^/interview-questions/[^/]+$'
EXCLUDED_PATH_SEGMENTS = ('position', 'category', 'company')
MIN_QUESTION_LENGTH = 8

# CSS selectors used inside a question card
CARD_SELECTORS = {
    'position': "a[href*='/interview-questions/position/']",
    'category': "a[href*='/interview-questions/category/']",
    'date': 'p.text-xs',
    'date_candidates': ['p', 'span', 'div']
}

CARD_CLASS_MARKER = 'rounded-lg'

# "Jan 5, 2024", "September 12, 2023", "Sept. 3, 2022"
DATE_PATTERN = (
    r'\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?'
    r'\s+\d{1,2},\s+\d{4}\b'
)

# Row fields and dedup
SERIAL_COLUMN = 'Sl No'
DEDUP_KEY_FIELDS = ('Question', 'Position', 'Category')
DEDUP_KEY_DELIMITER = '|'

# Spreadsheet export
EXPORT_COLUMNS = ['Sl No', 'Position', 'Category', 'Question', 'Date']
EXPORT_SHEET_NAME = 'Questions'
EXPORT_ENGINE = 'openpyxl'
FILENAME_SUFFIX = '_Interview_Questions.xlsx'
FILENAME_FALLBACK = 'Company'

# Status line messages
STATUS_MESSAGES = {
    'missing_company': 'Please enter a company name.',
    'starting': 'Starting scraper...',
    'opening': 'Opening page {page_no}...',
    'extracting': 'Extracting page {page_no}...',
    'retrying': 'Page {page_no} looks empty, retrying ({attempt}/{attempts})...',
    'timeout': 'Page {page_no} did not finish loading, treating it as empty',
    'page_done': 'Page {page_no}: {count} rows ({total} so far)',
    'restoring': 'Restoring original page...',
    'no_results': 'No interview questions found.',
    'done': 'Done! Exported {count} rows to {filename}',
    'error': 'Error: {message}'
}

VALID_NAVIGATORS = ('tab', 'fetch')
VALID_LOAD_DETECTION = ('event', 'poll')

DEFAULT_PATHS = {
    'config_file': 'config/settings.json',
    'logs_dir': 'logs',
    'output_dir': 'output'
}

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# Built-in settings; config/settings.json is merged over these
DEFAULT_SETTINGS = {
    'scraper': {
        'base_url': BASE_URL,
        'page_param': None,
        'max_pages': 200,
        'empty_page_threshold': 1,
        'extraction_attempts': 1,
        'delays': {
            'settle': 1.2,
            'retry': 1.0,
            'retry_increment': 0.5,
            'inter_page': 0.5
        }
    },
    'navigator': {
        'type': 'tab',
        'load_detection': 'event',
        'load_timeout_ms': 30000,
        'poll_interval_ms': 250,
        'headless': True,
        'cdp_url': None,
        'user_agent': DEFAULT_USER_AGENT
    },
    'storage': {
        'output_dir': DEFAULT_PATHS['output_dir']
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs/scraper.log',
        'max_size': 10485760,
        'backup_count': 5
    }
}
