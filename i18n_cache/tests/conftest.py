"""
Pytest configuration and fixtures.
"""
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock

from i18n_cache.backends.simple_backend import SimpleBackend
from i18n_cache.cache.cache_backend import CachedBackend
from i18n_cache.cache.version_manager import VersionManager
from i18n_cache.stores.memory_store import MemoryStore
from i18n_cache.stores.sqlite_store import SQLiteStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def temp_dir():
    """Create temporary directory."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_translations():
    """Sample translation data for testing."""
    return {
        "en": {
            "greeting": "Hello",
            "welcome": "Welcome, %{name}!",
            "menu": {"items": ["File", "Edit"], "title": "Menu"},
            "inbox": {
                "messages": {
                    "zero": "No messages",
                    "one": "%{count} message",
                    "other": "%{count} messages",
                }
            },
        },
        "de": {
            "greeting": "Hallo",
        },
    }


@pytest.fixture
def simple_backend(sample_translations):
    return SimpleBackend(sample_translations)


@pytest.fixture
def lookup(simple_backend):
    """Backend mock that records calls and delegates to a SimpleBackend."""
    return Mock(wraps=simple_backend)


@pytest.fixture
def memory_store():
    return MemoryStore(max_entries=100)


@pytest.fixture
def sqlite_store(temp_dir):
    store = SQLiteStore(temp_dir / "cache.db")
    yield store
    store.close()


@pytest.fixture
def version_manager(memory_store, clock):
    return VersionManager(memory_store, fetch_interval=5.0, clock=clock)


@pytest.fixture
def cached(lookup, memory_store, version_manager):
    """CachedBackend over the recording backend and a memory store."""
    return CachedBackend(lookup, store=memory_store, version_manager=version_manager)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Setup test environment variables."""
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    for name in ("I18N_CACHE_ENABLED", "I18N_CACHE_STORE",
                 "I18N_CACHE_NAMESPACE", "I18N_CACHE_DB_PATH"):
        monkeypatch.delenv(name, raising=False)
