"""
Read-through cache in front of a translation backend.

Wrap any ITranslationBackend and point it at a store:

    backend = CachedBackend(SimpleBackend(), store=MemoryStore())
    backend.translate("en", "greeting")

Without a store the wrapper passes every call straight through.

Lookup keys are derived from the canonical content of the options, not from
object identity. Options holding values with no canonical form (a callable
``default`` for instance) are never cached; such lookups always reach the
wrapped backend. If a callable default is in fact constant, look up without
it and apply the fallback yourself to get caching back.

Storing new translations does not invalidate cached lookups. Call
``invalidate()`` after loading data at runtime.
"""
import copy
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from ..core.exceptions import FingerprintError, MissingTranslationData
from ..core.interfaces import ICacheStore, ITranslationBackend
from .fingerprint import build_fingerprint
from .version_manager import DEFAULT_FETCH_INTERVAL, VersionManager


logger = logging.getLogger(__name__)


class CachedBackend(ITranslationBackend):
    """
    Translation backend decorator with read-through caching.

    Features:
    - Versioned keys: ``invalidate()`` drops every entry in O(1)
    - Missing translations are cached and re-raised on every hit
    - Hits return copies, so callers never mutate the cached instance
    - Store errors propagate; there is no silent uncached fallback
    """

    def __init__(
        self,
        backend: ITranslationBackend,
        store: Optional[ICacheStore] = None,
        namespace: Optional[str] = None,
        version_manager: Optional[VersionManager] = None,
        fetch_interval: float = DEFAULT_FETCH_INTERVAL
    ):
        """
        Initialize cached backend.

        Args:
            backend: Backend performing the actual lookups
            store: Cache store (None disables caching)
            namespace: Key partition when several caches share one store
            version_manager: Epoch holder to share between backends
                (built from store and fetch_interval when omitted)
            fetch_interval: Seconds a locally cached epoch stays valid
        """
        self.backend = backend
        self.store = store
        self.namespace = namespace

        if version_manager is None and store is not None:
            version_manager = VersionManager(store, fetch_interval=fetch_interval)
        self.version_manager = version_manager

        self._hits = 0
        self._misses = 0
        self._bypassed = 0
        self._stats_lock = threading.Lock()

    @property
    def perform_caching(self) -> bool:
        """True when a store is configured."""
        return self.store is not None

    def translate(self, locale: str, key: Any, **options: Any) -> Any:
        """
        Look up a translation, answering from the cache when possible.

        Raises:
            MissingTranslationData: If the backend has no translation,
                whether found now or cached from an earlier lookup
            CacheError: If the store is unavailable
        """
        if not self.perform_caching:
            return self.backend.translate(locale, key, **options)

        try:
            fingerprint = self.fingerprint(locale, key, options)
        except FingerprintError as e:
            logger.debug(f"Cache bypass for {locale}/{key}: {e}")
            self._increment_stat('bypassed')
            return self.backend.translate(locale, key, **options)

        return self.fetch_or_compute(
            fingerprint,
            lambda: self.backend.translate(locale, key, **options)
        )

    def fetch_or_compute(self, fingerprint: str, compute: Callable[[], Any]) -> Any:
        """
        Read fingerprint from the store, computing and storing it on a miss.

        A MissingTranslationData raised by ``compute`` is stored as the
        entry's value and then raised. Any other exception propagates and
        nothing is stored.

        Args:
            fingerprint: Cache key
            compute: Produces the value on a miss

        Returns:
            Copy of the cached or computed value
        """
        computed = False

        def fill() -> Any:
            nonlocal computed
            computed = True
            return compute()

        try:
            result = self.store.fetch(fingerprint, fill)
        except MissingTranslationData as e:
            self.store.write(fingerprint, e)
            result = e

        self._increment_stat('misses' if computed else 'hits')
        logger.debug(f"Cache {'miss' if computed else 'hit'}: {fingerprint}")

        if isinstance(result, Exception):
            raise _detach(result)

        return _detach(result)

    def fingerprint(self, locale: str, key: Any, options: Optional[Mapping[str, Any]]) -> str:
        """
        Cache key for a lookup under the current epoch.

        Raises:
            FingerprintError: If key or options have no canonical form
        """
        return build_fingerprint(
            self.namespace,
            locale,
            key,
            options,
            self.version_manager.current_epoch()
        )

    def invalidate(self) -> Optional[int]:
        """
        Invalidate every cached lookup by bumping the epoch.

        Returns:
            The new epoch, or None when caching is disabled
        """
        if not self.perform_caching:
            return None
        return self.version_manager.invalidate()

    def current_epoch(self) -> Optional[int]:
        """Current epoch, or None when caching is disabled."""
        if not self.perform_caching:
            return None
        return self.version_manager.current_epoch()

    def store_translations(self, locale: str, data: Dict[str, Any]) -> None:
        # TODO: invalidate here once stale-entry semantics for runtime
        # reloads are settled; callers must call invalidate() themselves.
        self.backend.store_translations(locale, data)

    def available_locales(self) -> List[str]:
        return self.backend.available_locales()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._stats_lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            stats = {
                'enabled': self.perform_caching,
                'namespace': self.namespace,
                'hits': self._hits,
                'misses': self._misses,
                'bypassed': self._bypassed,
                'hit_rate': round(hit_rate, 2),
                'total_requests': total_requests
            }

        if self.store is not None:
            stats.update(self.store.get_stats())

        return stats

    def _increment_stat(self, stat: str) -> None:
        """Thread-safe stat increment."""
        with self._stats_lock:
            if stat == 'hits':
                self._hits += 1
            elif stat == 'misses':
                self._misses += 1
            elif stat == 'bypassed':
                self._bypassed += 1


def _detach(value: Any) -> Any:
    """
    Return an independent copy of a cached value.

    Exceptions are shallow-copied, which drops the traceback left by any
    earlier raise. Values that cannot be copied are returned as-is.
    """
    try:
        if isinstance(value, BaseException):
            return copy.copy(value)
        return copy.deepcopy(value)
    except (copy.Error, TypeError):
        return value
