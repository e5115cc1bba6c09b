import asyncio
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_PATHS, STATUS_MESSAGES, VALID_LOAD_DETECTION, VALID_NAVIGATORS
from .scraper.config import ConfigError, ScraperConfig
from .scraper.navigator import FetchError, NavigationError
from .scraper.questionbank import scrape_company_questions
from .utils.excel_handler import ExcelHandler, to_filename
from .utils.monitoring import ScrapingMetrics
from .utils.validation import DataValidator, print_validation_report, validate_company_name


def setup_logging(config: Dict[str, Any]) -> None:
    """Set up logging configuration for both file and console output."""
    log_file = config['logging']['file']
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # Get the root logger
    root_logger = logging.getLogger()

    # Clear any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, str(config['logging']['level']).upper(), logging.INFO)
    root_logger.setLevel(log_level)

    from logging.handlers import RotatingFileHandler
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=config['logging'].get('max_size', 10485760),
        backupCount=config['logging'].get('backup_count', 5),
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)

    # Console only shows warnings; progress goes through the status line
    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(log_level, logging.WARNING))

    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    file_handler.setFormatter(file_formatter)
    console_handler.setFormatter(console_formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info(f"Logging initialized - Level: {config['logging']['level']}")
    root_logger.info(f"Log file: {log_file}")


def print_status(message: str) -> None:
    """Status line: one message per phase, on stderr so stdout stays clean."""
    print(message, file=sys.stderr, flush=True)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Export a company\'s interview questions from the question bank to Excel'
    )
    parser.add_argument('company', nargs='?', help='Company name (prompted for when omitted)')
    parser.add_argument('--config', type=str, default=None,
                        help=f"Path to configuration file (default: {DEFAULT_PATHS['config_file']})")
    parser.add_argument('--init-config', action='store_true',
                        help='Write the default configuration file and exit')
    parser.add_argument('--output-dir', type=str, help='Directory for the exported workbook')
    parser.add_argument('--navigator', choices=VALID_NAVIGATORS,
                        help='Drive a browser tab or fetch pages over HTTP')
    parser.add_argument('--load-detection', choices=VALID_LOAD_DETECTION,
                        help='Detect page load via the load event or by polling readyState')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument('--cdp-url', type=str,
                        help='Attach to a running Chrome (e.g. http://localhost:9222) and use its open tab')
    parser.add_argument('--max-pages', type=int, help='Safety cap on pages visited (default: 200)')
    parser.add_argument('--empty-threshold', type=int,
                        help='Consecutive empty pages that end the listing (default: 1)')
    parser.add_argument('--attempts', type=int,
                        help='Extraction attempts per page while it renders no rows (default: 1)')
    parser.add_argument('--backup', action='store_true', help='Back up an existing workbook before overwriting')
    parser.add_argument('--skip-validation', action='store_true', help='Skip data validation')
    parser.add_argument('--dry-run', action='store_true', help='Scrape without writing the workbook')
    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate command line options into nested settings."""
    overrides: Dict[str, Any] = {'scraper': {}, 'navigator': {}, 'storage': {}}

    if args.output_dir:
        overrides['storage']['output_dir'] = args.output_dir
    if args.navigator:
        overrides['navigator']['type'] = args.navigator
    if args.load_detection:
        overrides['navigator']['load_detection'] = args.load_detection
    if args.headed:
        overrides['navigator']['headless'] = False
    if args.cdp_url:
        overrides['navigator']['cdp_url'] = args.cdp_url
    if args.max_pages is not None:
        overrides['scraper']['max_pages'] = args.max_pages
    if args.empty_threshold is not None:
        overrides['scraper']['empty_page_threshold'] = args.empty_threshold
    if args.attempts is not None:
        overrides['scraper']['extraction_attempts'] = args.attempts

    return {section: values for section, values in overrides.items() if values}


def load_config(args: argparse.Namespace) -> ScraperConfig:
    """
    Load settings for this run.

    An explicit --config must exist; the default settings file is optional
    and the built-in defaults are used without it.
    """
    overrides = build_overrides(args)
    if args.config:
        return ScraperConfig(args.config, overrides).validate()

    if Path(DEFAULT_PATHS['config_file']).exists():
        return ScraperConfig(DEFAULT_PATHS['config_file'], overrides).validate()

    print_status(f"Warning: {DEFAULT_PATHS['config_file']} not found, using built-in defaults")
    return ScraperConfig(None, overrides).validate()


def read_company(args: argparse.Namespace) -> str:
    if args.company is not None:
        return args.company
    try:
        return input("Company name: ")
    except EOFError:
        return ""


async def run(args: argparse.Namespace) -> int:
    """Run one scrape-and-export session; returns the process exit code."""
    if args.init_config:
        path = ScraperConfig().save(args.config or DEFAULT_PATHS['config_file'])
        print_status(f"Wrote default configuration to {path}")
        return 0

    try:
        config = load_config(args)
    except ConfigError as e:
        print_status(STATUS_MESSAGES['error'].format(message=e))
        return 1

    setup_logging(config.settings)
    logger = logging.getLogger(__name__)

    try:
        company = validate_company_name(read_company(args))
    except ValueError as e:
        print_status(str(e))
        return 1

    metrics = ScrapingMetrics()
    try:
        print_status(STATUS_MESSAGES['starting'])
        rows = await scrape_company_questions(company, config, reporter=print_status, metrics=metrics)

        if not rows:
            print_status(STATUS_MESSAGES['no_results'])
            return 0

        if not args.skip_validation:
            validation_summary = DataValidator().validate_rows(rows)
            print_validation_report(validation_summary)
            if validation_summary['invalid_rows']:
                logger.warning(f"{validation_summary['invalid_rows']} rows failed validation")

        filename = to_filename(company)
        if args.dry_run:
            logger.info("DRY RUN MODE - No data will be saved")
            print_status(f"Dry run: {len(rows)} rows would be exported to {filename}")
            return 0

        handler = ExcelHandler(config['storage']['output_dir'])
        excel_path = handler.export(rows, filename, backup=args.backup)
        metrics.record_export(len(rows))
        logger.info(f"Workbook stats: {handler.get_export_stats(filename)}")
        print_status(STATUS_MESSAGES['done'].format(count=len(rows), filename=excel_path.name))
        return 0

    except FetchError as e:
        logger.error(f"Fetch failed with HTTP {e.status}: {e.url}")
        metrics.record_error('fetch_error', str(e))
        print_status(STATUS_MESSAGES['error'].format(message=e))
        return 1
    except (NavigationError, ValueError) as e:
        logger.error(f"Scraping aborted: {e}")
        metrics.record_error('scraping_error', str(e))
        print_status(STATUS_MESSAGES['error'].format(message=e))
        return 1
    except Exception as e:
        logger.error(f"Fatal error occurred during scraping: {e}")
        logger.debug("Full error details:", exc_info=True)
        metrics.record_error('fatal_error', str(e))
        print_status(STATUS_MESSAGES['error'].format(message=e))
        return 1
    finally:
        metrics.finalize_session()
        metrics.log_summary()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print_status("\nScraping interrupted by user. Nothing was exported.")
        return 130


if __name__ == '__main__':
    sys.exit(main())
