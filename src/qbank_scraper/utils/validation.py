from typing import Dict, List, Any, Tuple
import logging

from ..constants import SERIAL_COLUMN, STATUS_MESSAGES
from .deduplication import dedup_key
from .text_processor import TextProcessor


def validate_company_name(company: str) -> str:
    """
    Trim and check the company name typed by the user.

    Raises:
        ValueError: If nothing is left after trimming
    """
    cleaned = (company or '').strip()
    if not cleaned:
        raise ValueError(STATUS_MESSAGES['missing_company'])
    return cleaned


class DataValidator:
    """Checks scraped rows before they are exported."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_row(self, row: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """Validate a single row's content."""
        errors = []
        warnings = []

        question = row.get('Question')
        if not question or not str(question).strip():
            errors.append("Missing or empty required field: Question")
        elif '<' in question or '>' in question:
            warnings.append(f"Question text may contain HTML tags: {TextProcessor.truncate_text(question, 50)}")

        for field in ('Position', 'Category', 'Date'):
            if not row.get(field):
                warnings.append(f"Missing optional field: {field}")

        return len(errors) == 0, errors, warnings

    def validate_rows(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Validate a batch of rows and return a summary.

        Besides per-row checks, verifies that no two rows share a dedup key
        and that "Sl No" runs 1..N in row order.
        """
        summary = {
            'total_rows': len(rows),
            'valid_rows': 0,
            'invalid_rows': 0,
            'rows_with_warnings': 0,
            'duplicate_keys': 0,
            'serials_ok': True,
            'errors': [],
            'warnings': [],
            'warning_types': {}
        }

        seen_keys = set()
        for i, row in enumerate(rows, 1):
            is_valid, errors, warnings = self.validate_row(row)

            key = dedup_key(row)
            if key in seen_keys:
                summary['duplicate_keys'] += 1
                errors.append("Duplicate row")
                is_valid = False
            seen_keys.add(key)

            if row.get(SERIAL_COLUMN) != i:
                summary['serials_ok'] = False
                errors.append(f"Expected {SERIAL_COLUMN} {i}, got {row.get(SERIAL_COLUMN)!r}")
                is_valid = False

            if is_valid:
                summary['valid_rows'] += 1
            else:
                summary['invalid_rows'] += 1
                summary['errors'].extend([f"Row {i}: {error}" for error in errors])

            if warnings:
                summary['rows_with_warnings'] += 1
                summary['warnings'].extend([f"Row {i}: {warning}" for warning in warnings])
                for warning in warnings:
                    warning_type = warning.split(':')[0]
                    summary['warning_types'][warning_type] = summary['warning_types'].get(warning_type, 0) + 1

        self.logger.info(f"Validated {len(rows)} rows: {summary['valid_rows']} valid, "
                         f"{summary['invalid_rows']} invalid, {summary['rows_with_warnings']} with warnings")
        return summary


def print_validation_report(validation_summary: Dict[str, Any]) -> None:
    """Print a formatted validation report."""
    print("\n📊 Data Validation Report")
    print("=" * 50)
    print(f"Total Rows: {validation_summary['total_rows']}")
    print(f"Valid Rows: {validation_summary['valid_rows']}")
    print(f"Invalid Rows: {validation_summary['invalid_rows']}")
    print(f"Rows with Warnings: {validation_summary['rows_with_warnings']}")

    if validation_summary['warning_types']:
        print("\n⚠️ Warning Types:")
        for warning_type, count in validation_summary['warning_types'].items():
            print(f"  {warning_type}: {count}")

    if validation_summary['errors']:
        print(f"\n❌ First 5 Errors:")
        for error in validation_summary['errors'][:5]:
            print(f"  {error}")
