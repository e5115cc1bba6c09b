import time
from datetime import datetime
from typing import Any, Dict, List
import logging

import psutil  # type: ignore


class ScrapingMetrics:
    """Tracks and reports metrics for one scraping session."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.session_start = time.time()
        self.session_metrics = {
            'session_id': datetime.now().strftime('%Y%m%d_%H%M%S'),
            'start_time': datetime.now().isoformat(),
            'end_time': None,
            'duration_seconds': 0,
            'pages_visited': 0,
            'empty_pages': 0,
            'load_timeouts': 0,
            'extraction_retries': 0,
            'rows_extracted': 0,
            'duplicates_removed': 0,
            'rows_exported': 0,
            'avg_page_load_time': 0,
            'peak_memory_mb': 0,
            'errors': []
        }
        self.page_load_times: List[float] = []
        self.last_memory_check = 0.0

    def record_page_visited(self, load_time: float = 0, loaded: bool = True) -> None:
        """Record a page visit with load time."""
        self.session_metrics['pages_visited'] += 1
        if not loaded:
            self.session_metrics['load_timeouts'] += 1
        if load_time > 0:
            self.page_load_times.append(load_time)
            self.session_metrics['avg_page_load_time'] = sum(self.page_load_times) / len(self.page_load_times)
        self._sample_memory()

    def _sample_memory(self, force: bool = False) -> None:
        """Track peak resident memory, at most every 10 seconds unless forced."""
        now = time.time()
        if not force and now - self.last_memory_check < 10:
            return
        try:
            memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
        except psutil.Error as e:
            self.logger.debug(f"Could not read process memory: {e}")
            return
        self.session_metrics['peak_memory_mb'] = max(self.session_metrics['peak_memory_mb'], memory_mb)
        self.last_memory_check = now

    def record_page_rows(self, count: int) -> None:
        """Record how many rows a page produced."""
        if count:
            self.session_metrics['rows_extracted'] += count
        else:
            self.session_metrics['empty_pages'] += 1

    def record_extraction_retry(self) -> None:
        self.session_metrics['extraction_retries'] += 1

    def record_deduplication(self, before: int, after: int) -> None:
        self.session_metrics['duplicates_removed'] += before - after

    def record_export(self, count: int) -> None:
        self.session_metrics['rows_exported'] += count

    def record_error(self, error_type: str, error_message: str) -> None:
        """Record an error occurrence."""
        self.session_metrics['errors'].append({
            'timestamp': datetime.now().isoformat(),
            'type': error_type,
            'message': error_message
        })

    def finalize_session(self) -> None:
        """Stamp the end time and duration."""
        self.session_metrics['end_time'] = datetime.now().isoformat()
        self.session_metrics['duration_seconds'] = time.time() - self.session_start
        self._sample_memory(force=True)

    def get_summary(self) -> Dict[str, Any]:
        """Current metrics, with the duration updated."""
        summary = dict(self.session_metrics)
        summary['duration_seconds'] = time.time() - self.session_start
        return summary

    def log_summary(self) -> None:
        summary = self.get_summary()
        self.logger.info("Session metrics:")
        self.logger.info(f"  Pages visited: {summary['pages_visited']} "
                         f"({summary['empty_pages']} empty, {summary['load_timeouts']} timed out)")
        self.logger.info(f"  Extraction retries: {summary['extraction_retries']}")
        self.logger.info(f"  Rows extracted: {summary['rows_extracted']}, "
                         f"duplicates removed: {summary['duplicates_removed']}")
        self.logger.info(f"  Average page load: {summary['avg_page_load_time']:.2f}s")
        self.logger.info(f"  Peak memory: {summary['peak_memory_mb']:.1f} MB")
        self.logger.info(f"  Duration: {summary['duration_seconds']:.1f}s")
