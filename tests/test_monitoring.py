"""Tests for session metrics."""

from qbank_scraper.utils.monitoring import ScrapingMetrics


def test_counters():
    metrics = ScrapingMetrics()

    metrics.record_page_visited(0.5)
    metrics.record_page_visited(1.5, loaded=False)
    metrics.record_page_rows(3)
    metrics.record_page_rows(0)
    metrics.record_extraction_retry()
    metrics.record_deduplication(5, 3)
    metrics.record_export(3)
    metrics.record_error('fetch_error', 'HTTP 503')

    summary = metrics.get_summary()
    assert summary['pages_visited'] == 2
    assert summary['load_timeouts'] == 1
    assert summary['avg_page_load_time'] == 1.0
    assert summary['rows_extracted'] == 3
    assert summary['empty_pages'] == 1
    assert summary['extraction_retries'] == 1
    assert summary['duplicates_removed'] == 2
    assert summary['rows_exported'] == 3
    assert summary['errors'][0]['type'] == 'fetch_error'


def test_finalize_records_end_time_and_memory():
    metrics = ScrapingMetrics()

    metrics.finalize_session()
    metrics.log_summary()

    assert metrics.session_metrics['end_time'] is not None
    assert metrics.session_metrics['peak_memory_mb'] > 0
