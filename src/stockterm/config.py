"""Configuration loading.

The API key lives in a small JSON file next to the application:

    {"alpha_vantage_api_key": "..."}

The file location can be given explicitly or through STOCKTERM_CONFIG. Every value
can be overridden with an environment variable (STOCKTERM_API_KEY, STOCKTERM_BASE_URL,
STOCKTERM_TIMEOUT). A missing key is not fatal at startup; only calls that need it fail.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://www.alphavantage.co/query'
DEFAULT_TIMEOUT = 15.0
DEFAULT_CONFIG_FILE = 'config.json'

# older config files used the camel-cased key
_KEY_NAMES = ('alpha_vantage_api_key', 'alphaVantageAPIKey')


@dataclass(frozen=True)
class Config:
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError('API key not found in configuration')
        return self.api_key


def _read_file(path: str) -> dict:
    if not os.path.exists(path):
        logger.warning('Configuration file not found: %s', path)
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.error('Error decoding configuration %s: %s', path, exc)
        return {}
    if not isinstance(data, dict):
        logger.error('Invalid configuration data in %s', path)
        return {}
    return data


def load_config(path: Optional[str] = None) -> Config:
    """Load the configuration from `path` (or STOCKTERM_CONFIG, or ./config.json)."""
    path = path or os.environ.get('STOCKTERM_CONFIG') or DEFAULT_CONFIG_FILE
    data = _read_file(path)

    api_key = os.environ.get('STOCKTERM_API_KEY')
    if not api_key:
        api_key = next((str(data[k]) for k in _KEY_NAMES if data.get(k)), None)
    if not api_key:
        logger.warning('No API key configured; market data requests will fail')

    base_url = os.environ.get('STOCKTERM_BASE_URL') or data.get('base_url') or DEFAULT_BASE_URL

    timeout = DEFAULT_TIMEOUT
    raw_timeout = os.environ.get('STOCKTERM_TIMEOUT') or data.get('timeout')
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except (TypeError, ValueError):
            logger.warning('Ignoring invalid timeout %r', raw_timeout)

    return Config(api_key=api_key, base_url=base_url, timeout=timeout)
