"""i18n-cache - Versioned read-through cache for translation lookups."""
__version__ = "1.0.0"

from i18n_cache.backends.simple_backend import SimpleBackend
from i18n_cache.cache.cache_backend import CachedBackend
from i18n_cache.cache.version_manager import VersionManager
from i18n_cache.core.exceptions import MissingTranslationData
from i18n_cache.stores.memory_store import MemoryStore
from i18n_cache.stores.sqlite_store import SQLiteStore

__all__ = [
    "CachedBackend",
    "VersionManager",
    "SimpleBackend",
    "MemoryStore",
    "SQLiteStore",
    "MissingTranslationData",
]
