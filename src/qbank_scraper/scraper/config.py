"""
Centralized configuration handler for the question bank scraper.

Settings are read from a JSON file (config/settings.json by default) and
deep-merged over the built-in defaults, so a settings file only needs the
values it changes.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..constants import DEFAULT_SETTINGS, PAGE_PARAMS, VALID_LOAD_DETECTION, VALID_NAVIGATORS


class ConfigError(ValueError):
    """Raised when settings are missing, malformed or out of range."""


def merge_settings(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge overrides into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


class ScraperConfig:
    """
    Centralized configuration handler.

    Loads the settings file, fills in defaults and exposes the pagination
    and navigation tuning values used by the scraper.
    """

    def __init__(self, settings_file: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize the configuration handler.

        Args:
            settings_file: Path to the JSON settings file, or None for defaults only
            overrides: Nested settings applied on top of the file (e.g. CLI options)
        """
        self.logger = logging.getLogger(__name__)
        self.settings_file = settings_file
        self.settings = self._load_settings()
        if overrides:
            self.settings = merge_settings(self.settings, overrides)

    @classmethod
    def from_dict(cls, settings: Dict[str, Any]) -> 'ScraperConfig':
        """Build a config from an in-memory settings dict."""
        return cls(settings_file=None, overrides=settings)

    def _load_settings(self) -> Dict[str, Any]:
        """
        Load settings from the configuration file.

        Returns:
            Defaults merged with the file's contents

        Raises:
            ConfigError: If the file doesn't exist or is not a JSON object
        """
        if not self.settings_file:
            return copy.deepcopy(DEFAULT_SETTINGS)

        settings_path = Path(self.settings_file)
        if not settings_path.exists():
            raise ConfigError(f"Settings file not found: {self.settings_file}")

        try:
            with open(settings_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.settings_file}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigError(f"Settings file {self.settings_file} must contain a JSON object")

        self.logger.info(f"Loaded settings from {self.settings_file}")
        return merge_settings(DEFAULT_SETTINGS, loaded)

    def validate(self) -> 'ScraperConfig':
        """
        Check value ranges and enumerations.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: On the first invalid value found
        """
        scraper = self.settings['scraper']
        navigator = self.settings['navigator']

        for key in ('max_pages', 'empty_page_threshold', 'extraction_attempts'):
            value = scraper.get(key)
            if not isinstance(value, int) or value < 1:
                raise ConfigError(f"scraper.{key} must be a positive integer (got {value!r})")

        for name, value in scraper.get('delays', {}).items():
            if not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"scraper.delays.{name} cannot be negative (got {value!r})")

        if navigator.get('type') not in VALID_NAVIGATORS:
            raise ConfigError(
                f"navigator.type must be one of {VALID_NAVIGATORS} (got {navigator.get('type')!r})"
            )
        if navigator.get('load_detection') not in VALID_LOAD_DETECTION:
            raise ConfigError(
                f"navigator.load_detection must be one of {VALID_LOAD_DETECTION} "
                f"(got {navigator.get('load_detection')!r})"
            )

        for key in ('load_timeout_ms', 'poll_interval_ms'):
            value = navigator.get(key)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"navigator.{key} must be positive (got {value!r})")

        if not scraper.get('base_url'):
            raise ConfigError("scraper.base_url is required")

        return self

    def __getitem__(self, section: str) -> Dict[str, Any]:
        return self.settings[section]

    @property
    def navigator_type(self) -> str:
        return self.settings['navigator']['type']

    @property
    def page_param(self) -> str:
        """Page number query parameter; defaults by navigator type."""
        return self.settings['scraper'].get('page_param') or PAGE_PARAMS[self.navigator_type]

    def delay(self, name: str) -> float:
        """Delay in seconds from scraper.delays."""
        return float(self.settings['scraper']['delays'].get(name, 0))

    def save(self, path: str) -> Path:
        """Write the current settings as JSON, creating parent directories."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(self.settings, f, indent=2)
        self.logger.info(f"Wrote settings to {target}")
        return target
