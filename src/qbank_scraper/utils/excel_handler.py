import re
import shutil
from pathlib import Path
from typing import Any, Dict, List
import logging

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE  # type: ignore

from ..constants import (
    EXPORT_COLUMNS, EXPORT_ENGINE, EXPORT_SHEET_NAME, FILENAME_FALLBACK, FILENAME_SUFFIX
)


def to_filename(company: str) -> str:
    """
    Spreadsheet filename for a company.

    "  Acme  Corp " -> "Acme_Corp_Interview_Questions.xlsx"; an empty name
    falls back to "Company_Interview_Questions.xlsx".
    """
    stem = re.sub(r'\s+', '_', (company or '').strip()) or FILENAME_FALLBACK
    return f"{stem}{FILENAME_SUFFIX}"


class ExcelHandler:
    """Writes scraped question rows to a single-sheet Excel workbook."""

    def __init__(self, output_dir: str = "output"):
        self.logger = logging.getLogger(__name__)
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def ensure_structure(self, df: pd.DataFrame) -> pd.DataFrame:
        """Ensure DataFrame has all export columns in the correct order."""
        for col in EXPORT_COLUMNS:
            if col not in df.columns:
                df[col] = ''

        return df[EXPORT_COLUMNS]

    def sanitize_text(self, df: pd.DataFrame) -> pd.DataFrame:
        """Drop control characters that openpyxl refuses to write."""
        df = df.copy()
        for col in df.columns:
            df[col] = df[col].map(
                lambda value: ILLEGAL_CHARACTERS_RE.sub('', value) if isinstance(value, str) else value
            )
        return df

    @staticmethod
    def _store_text_as_strings(worksheet) -> None:
        """Keep scraped text such as "=1+1 ..." from being saved as formulas."""
        for row in worksheet.iter_rows(min_row=2):
            for cell in row:
                if cell.data_type == 'f':
                    cell.data_type = 's'

    def export(self, rows: List[Dict[str, Any]], filename: str, backup: bool = False) -> Path:
        """
        Write rows to output_dir/filename.

        Columns are always Sl No, Position, Category, Question, Date,
        whatever the key order of the row dicts.

        Args:
            rows: Rows with "Sl No" assigned
            filename: Workbook filename
            backup: Copy an existing file with the same name aside first

        Returns:
            Path of the written workbook
        """
        excel_path = self.output_dir / filename

        if backup:
            self.backup_file(filename)

        df = self.sanitize_text(self.ensure_structure(pd.DataFrame(rows)))

        try:
            with pd.ExcelWriter(excel_path, engine=EXPORT_ENGINE) as writer:
                df.to_excel(writer, sheet_name=EXPORT_SHEET_NAME, index=False)
                self._store_text_as_strings(writer.sheets[EXPORT_SHEET_NAME])
        except Exception as e:
            self.logger.error(f"Error writing Excel file {excel_path}: {e}")
            raise

        self.logger.info(f"Exported {len(df)} rows to {excel_path}")
        return excel_path

    def get_export_stats(self, filename: str) -> Dict[str, Any]:
        """Get statistics about an exported workbook."""
        excel_path = self.output_dir / filename
        stats = {
            'exists': False,
            'total_rows': 0,
            'columns': [],
            'path': str(excel_path)
        }

        if excel_path.exists():
            try:
                df = pd.read_excel(excel_path, sheet_name=EXPORT_SHEET_NAME, engine=EXPORT_ENGINE)
                stats['exists'] = True
                stats['total_rows'] = len(df)
                stats['columns'] = df.columns.tolist()
            except Exception as e:
                self.logger.error(f"Error reading Excel stats for {filename}: {e}")

        return stats

    def backup_file(self, filename: str) -> bool:
        """Create a timestamped backup of an existing workbook."""
        excel_path = self.output_dir / filename

        if not excel_path.exists():
            return True

        backup_path = self.output_dir / (
            f"{excel_path.stem}_backup_{pd.Timestamp.now().strftime('%Y%m%d_%H%M%S')}{excel_path.suffix}"
        )

        try:
            shutil.copy2(excel_path, backup_path)
            self.logger.info(f"Created backup: {backup_path}")
            return True
        except OSError as e:
            self.logger.error(f"Error creating backup for {filename}: {e}")
            return False
