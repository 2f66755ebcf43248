"""
Configuration loader for ICP Lookup
Reads settings.yaml, merges CLI overrides and validates invariants
"""

import copy
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"

WAIT_STRATEGIES = ("selector", "sleep")

DEFAULTS: Dict[str, Any] = {
    "lookup": {
        "retries": 3,
        "retry_delay": 5,
        "render_wait": 2,
        "wait_strategy": "selector",
    },
    "browser": {
        "headless": True,
        "isolate_domains": True,
        "page_timeout": 30,
        "navigation_timeout": 45,
        "launch_timeout": 60,
        "channel": "",
        "executable_path": "",
    },
    "output": {
        "json": False,
    },
    "logging": {
        "level": "INFO",
        "log_file": "",
        "debug": False,
    },
}


class ConfigValidationError(ValueError):
    """Raised when configuration fails invariant validation."""
    pass


def _validate_non_negative(value: Any, field: str) -> None:
    """Validate that a numeric value is non-negative."""
    if value is not None and float(value) < 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be non-negative, got {value}"
        )


def _validate_positive(value: Any, field: str) -> None:
    """Validate that a numeric value is positive (> 0)."""
    if value is not None and float(value) <= 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be positive (> 0), got {value}"
        )


def _merge(base: Dict[str, Any], updates: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge ``updates`` into ``base`` (in place)."""
    for key, value in (updates or {}).items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class ConfigLoader:
    """Loads and validates configuration from YAML file plus overrides"""

    def __init__(self, config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        # An explicit path must exist; the default path is optional
        self.required = config_path is not None
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self._load()
        _merge(self.config, overrides)
        self._validate_invariants()

    def _load(self) -> None:
        """Load config from YAML file"""
        if not self.config_path.exists():
            if self.required:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
            logger.debug("No config at %s, using defaults", self.config_path)
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            logger.debug(f"Config loaded from {self.config_path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            raise

        if not isinstance(loaded, dict):
            raise ConfigValidationError(
                f"Invalid config: {self.config_path} must contain a mapping"
            )
        _merge(self.config, loaded)

    def _validate_invariants(self) -> None:
        """Validate configuration invariants. Raises ConfigValidationError on failure."""
        retries = self.get('lookup.retries')
        if retries is None or int(retries) < 1:
            raise ConfigValidationError(
                f"Invalid config: 'lookup.retries' must be at least 1, got {retries}"
            )

        _validate_non_negative(self.get('lookup.retry_delay'), 'lookup.retry_delay')
        _validate_non_negative(self.get('lookup.render_wait'), 'lookup.render_wait')

        strategy = self.get('lookup.wait_strategy')
        if strategy not in WAIT_STRATEGIES:
            raise ConfigValidationError(
                f"Invalid config: 'lookup.wait_strategy' must be one of "
                f"{', '.join(WAIT_STRATEGIES)}, got {strategy!r}"
            )

        _validate_positive(self.get('browser.page_timeout'), 'browser.page_timeout')
        _validate_positive(self.get('browser.navigation_timeout'), 'browser.navigation_timeout')
        _validate_positive(self.get('browser.launch_timeout'), 'browser.launch_timeout')

        logger.debug("Config invariants validated")

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by dot notation (e.g., 'lookup.retries')"""
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    # === Lookup Config ===

    def get_retries(self) -> int:
        """Get number of lookup attempts per domain"""
        return int(self.get('lookup.retries', 3))

    def get_retry_delay(self) -> float:
        """Get delay between lookup attempts in seconds"""
        return float(self.get('lookup.retry_delay', 5))

    def get_render_wait(self) -> float:
        """Get max seconds to wait for the detail page to render"""
        return float(self.get('lookup.render_wait', 2))

    def get_wait_strategy(self) -> str:
        return self.get('lookup.wait_strategy', 'selector')

    # === Browser Config ===

    def is_headless(self) -> bool:
        """Check if browser should run in headless mode"""
        return bool(self.get('browser.headless', True))

    def isolate_domains(self) -> bool:
        """Check if each domain gets a fresh browser context"""
        return bool(self.get('browser.isolate_domains', True))

    def get_page_timeout(self) -> int:
        """Get page load timeout in milliseconds"""
        return int(float(self.get('browser.page_timeout', 30)) * 1000)

    def get_navigation_timeout(self) -> int:
        """Get navigation timeout in milliseconds"""
        return int(float(self.get('browser.navigation_timeout', 45)) * 1000)

    def get_launch_timeout(self) -> int:
        """Get browser launch timeout in milliseconds"""
        return int(float(self.get('browser.launch_timeout', 60)) * 1000)

    def get_browser_channel(self) -> str:
        """Get Playwright browser channel override"""
        return self.get('browser.channel', '') or ''

    def get_browser_executable_path(self) -> str:
        """Get browser executable path override"""
        return self.get('browser.executable_path', '') or ''

    # === Output Config ===

    def is_json_output(self) -> bool:
        return bool(self.get('output.json', False))

    # === Logging Config ===

    def is_debug(self) -> bool:
        return bool(self.get('logging.debug', False))

    def get_log_level(self) -> str:
        """Get logging level"""
        if self.is_debug():
            return 'DEBUG'
        return str(self.get('logging.level', 'INFO')).upper()

    def get_log_file(self) -> Optional[Path]:
        """Get log file path with timestamp, or None when file logging is off"""
        template = self.get('logging.log_file', '')
        if not template:
            return None
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        return Path(template.replace('{timestamp}', timestamp))

    def __repr__(self) -> str:
        return (
            f"<Config: retries={self.get_retries()}, "
            f"json={self.is_json_output()}, debug={self.is_debug()}>"
        )


# Convenience function
def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None) -> ConfigLoader:
    """Load configuration from file"""
    return ConfigLoader(config_path, overrides)
