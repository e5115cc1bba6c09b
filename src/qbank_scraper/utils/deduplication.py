"""
Row deduplication helpers.

Rows are identified by the lower-cased Question, Position and Category joined
with a delimiter that does not occur in scraped content. The first occurrence
of a key wins, so deduplicating preserves first-seen order and applying it
twice gives the same result as applying it once.
"""

from typing import Any, Dict, Iterable, List

from ..constants import DEDUP_KEY_DELIMITER, DEDUP_KEY_FIELDS, SERIAL_COLUMN


def dedup_key(row: Dict[str, Any]) -> str:
    """Build the dedup key for a row."""
    parts = [str(row.get(field) or '') for field in DEDUP_KEY_FIELDS]
    return DEDUP_KEY_DELIMITER.join(parts).lower()


def dedupe_rows(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Drop rows whose dedup key was already seen.

    Args:
        rows: Rows in scrape order

    Returns:
        List of unique rows in first-seen order
    """
    seen = set()
    unique = []

    for row in rows:
        key = dedup_key(row)
        if key in seen:
            continue
        seen.add(key)
        unique.append(row)

    return unique


def assign_serial_numbers(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return copies of rows numbered 1..N in their current order."""
    return [{**row, SERIAL_COLUMN: index} for index, row in enumerate(rows, 1)]
