"""Store settings — defaults and MSGCACHE_* environment overrides."""

import pytest
from pydantic import ValidationError

from msgcache.config import Settings, get_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.cache_file == "cache.db"
    assert settings.cache_duration_seconds == 12 * 3600
    assert settings.log_format == "json"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MSGCACHE_CACHE_FILE", "/tmp/other.db")
    monkeypatch.setenv("MSGCACHE_CACHE_DURATION_SECONDS", "60")
    settings = get_settings()
    assert settings.cache_file == "/tmp/other.db"
    assert settings.cache_duration_seconds == 60


def test_blank_cache_file_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, cache_file="   ")


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
