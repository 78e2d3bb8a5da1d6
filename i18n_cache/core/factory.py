"""
Factories wiring stores and cached backends from configuration.
"""
import threading
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .exceptions import ConfigurationError
from .interfaces import ICacheStore, ITranslationBackend
from ..cache.cache_backend import CachedBackend
from ..stores.memory_store import MemoryStore
from ..stores.sqlite_store import SQLiteStore
from ..utils.config_manager import CacheConfig


logger = logging.getLogger(__name__)


StoreBuilder = Callable[[CacheConfig], ICacheStore]


class StoreFactory:
    """Thread-safe registry of store builders keyed by store type."""

    def __init__(self):
        self._registry: Dict[str, StoreBuilder] = {}
        self._lock = threading.RLock()

    def register(self, name: str, builder: StoreBuilder) -> None:
        with self._lock:
            self._registry[name.lower().strip()] = builder
        logger.debug(f"Registered cache store: {name}")

    def list_stores(self) -> List[str]:
        with self._lock:
            return sorted(self._registry)

    def create(self, config: CacheConfig) -> ICacheStore:
        """
        Build the store named by ``config.store``.

        Raises:
            ConfigurationError: If the store type is unknown or fails to build
        """
        name = config.store.lower().strip()
        with self._lock:
            builder = self._registry.get(name)

        if builder is None:
            available = ', '.join(self.list_stores())
            raise ConfigurationError(
                f"Unknown cache store: {name}. Available: {available or 'none'}",
                component="store"
            )

        try:
            store = builder(config)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to create {name} store: {e}",
                component="store"
            ) from e

        logger.info(f"Created cache store: {name}")
        return store


def _register_default_stores(factory: StoreFactory) -> None:
    factory.register(
        "memory",
        lambda config: MemoryStore(
            max_entries=config.max_entries,
            ttl_seconds=config.ttl_seconds
        )
    )
    factory.register(
        "sqlite",
        lambda config: SQLiteStore(
            Path(config.db_path),
            ttl_seconds=config.ttl_seconds
        )
    )


_store_factory: Optional[StoreFactory] = None
_factory_lock = threading.Lock()


def get_store_factory() -> StoreFactory:
    """Global store factory with the built-in stores registered."""
    global _store_factory

    if _store_factory is not None:
        return _store_factory

    with _factory_lock:
        if _store_factory is None:
            factory = StoreFactory()
            _register_default_stores(factory)
            _store_factory = factory

    return _store_factory


def create_store(config: CacheConfig) -> Optional[ICacheStore]:
    """
    Build the configured store, or None when caching is disabled.

    Raises:
        ConfigurationError: If the store cannot be built
    """
    if not config.enabled:
        logger.info("Translation cache disabled")
        return None
    return get_store_factory().create(config)


def create_cached_backend(
    backend: ITranslationBackend,
    config: CacheConfig,
    store: Optional[ICacheStore] = None
) -> CachedBackend:
    """
    Wrap backend in a CachedBackend configured from config.

    Args:
        backend: Backend performing the actual lookups
        config: Cache settings
        store: Existing store to reuse (built from config when omitted)
    """
    if store is None:
        store = create_store(config)

    return CachedBackend(
        backend,
        store=store,
        namespace=config.namespace,
        fetch_interval=config.version_fetch_interval
    )
