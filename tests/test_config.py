import json

import pytest

from stockterm.config import DEFAULT_BASE_URL, Config, load_config
from stockterm.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('STOCKTERM_CONFIG', 'STOCKTERM_API_KEY', 'STOCKTERM_BASE_URL', 'STOCKTERM_TIMEOUT'):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


def test_load_from_file(tmp_path):
    config = load_config(write_config(tmp_path, {'alpha_vantage_api_key': 'abc', 'timeout': 5}))
    assert config.api_key == 'abc'
    assert config.timeout == 5.0
    assert config.base_url == DEFAULT_BASE_URL
    assert config.require_api_key() == 'abc'


def test_legacy_key_name(tmp_path):
    config = load_config(write_config(tmp_path, {'alphaVantageAPIKey': 'legacy'}))
    assert config.api_key == 'legacy'


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv('STOCKTERM_CONFIG', write_config(tmp_path, {'alpha_vantage_api_key': 'abc'}))
    monkeypatch.setenv('STOCKTERM_API_KEY', 'from-env')
    monkeypatch.setenv('STOCKTERM_TIMEOUT', '3')
    config = load_config()
    assert config.api_key == 'from-env'
    assert config.timeout == 3.0


def test_missing_file_is_not_fatal(tmp_path):
    config = load_config(str(tmp_path / 'nope.json'))
    assert config.api_key is None
    with pytest.raises(ConfigurationError):
        config.require_api_key()


def test_unreadable_file_is_not_fatal(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{not json', encoding='utf-8')
    assert load_config(str(path)) == Config()
