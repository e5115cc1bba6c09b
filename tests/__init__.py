"""
Test suite for the question bank scraper.

Covers card extraction, pagination and stop conditions, navigators,
deduplication, Excel export, configuration and the command line entry point.
"""
