"""Root conftest — shared fixtures: pinned clock, in-memory and on-disk stores."""

import os

import pytest

from msgcache.config import get_settings
from msgcache.services.message_store import open_store

from tests.fake_clock import FakeClock

# Ensure tests never pick up a developer's cache file or log settings
for _key in [k for k in os.environ if k.startswith("MSGCACHE_")]:
    del os.environ[_key]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    """Fresh in-memory store at the current schema version."""
    with open_store(":memory:", clock=clock, observer=None) as s:
        yield s


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "cache.db")


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
