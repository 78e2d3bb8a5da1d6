"""
Thread-safe in-process cache store.
LRU eviction with optional TTL.
"""
import copy
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar
import logging

from ..core.exceptions import CacheWriteError
from ..core.interfaces import ICacheStore, RawValue


logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class CacheItem:
    """Cache item with metadata."""
    value: Any
    created_at: float
    raw: bool = False
    access_count: int = 0
    last_accessed: float = None

    def __post_init__(self):
        if self.last_accessed is None:
            self.last_accessed = self.created_at


class MemoryStore(ICacheStore):
    """
    In-process LRU store.

    Marshalled values are deep-copied on the way in and out, so nothing a
    caller holds aliases the stored instance. Values that cannot be copied
    are stored and returned as-is. Raw values are kept verbatim.

    ``fetch`` fills under a per-key lock and outside the store lock:
    concurrent misses on one key compute once per process, while misses on
    other keys and raw reads proceed.
    """

    def __init__(
        self,
        max_entries: int = 10000,
        ttl_seconds: Optional[float] = None
    ):
        """
        Initialize memory store.

        Args:
            max_entries: Maximum number of items
            ttl_seconds: Time-to-live in seconds (None = no expiration)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds

        self._cache: 'OrderedDict[str, CacheItem]' = OrderedDict()
        self._lock = threading.Lock()
        self._fill_locks: Dict[str, _FillLock] = {}

        self._hits = 0
        self._misses = 0
        self._evictions = 0

        logger.debug(f"Initialized memory store: max_entries={max_entries}, ttl={ttl_seconds}")

    @property
    def name(self) -> str:
        return "memory"

    def fetch(self, key: str, fill: Callable[[], T]) -> T:
        with self._lock:
            item = self._get_item(key)
            if item is not None and not item.raw:
                return _duplicate(item.value)

            fill_lock = self._fill_locks.get(key)
            if fill_lock is None:
                fill_lock = self._fill_locks[key] = _FillLock()
            fill_lock.users += 1

        try:
            with fill_lock.lock:
                # Filled by another thread while this one waited
                with self._lock:
                    item = self._get_item(key, record=False)
                    if item is not None and not item.raw:
                        return _duplicate(item.value)

                value = fill()

                with self._lock:
                    self._set_item(key, _duplicate(value), raw=False)
                return value
        finally:
            with self._lock:
                fill_lock.users -= 1
                if fill_lock.users == 0:
                    del self._fill_locks[key]

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._get_item(key)
            if item is None or item.raw:
                return None
            return _duplicate(item.value)

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            self._set_item(key, _duplicate(value), raw=False)

    def read_raw(self, key: str) -> Optional[RawValue]:
        with self._lock:
            item = self._get_item(key)
            if item is None:
                return None
            if not item.raw:
                return str(item.value)
            return item.value

    def write_raw(self, key: str, value: int) -> None:
        with self._lock:
            self._set_item(key, value, raw=True)

    def increment(self, key: str, delta: int = 1) -> int:
        """
        Increment counter atomically.

        Raises:
            CacheWriteError: If the stored value is not an integer
        """
        with self._lock:
            item = self._get_item(key)
            current = 0 if item is None else item.value

            if item is not None and not (item.raw and _is_integer(current)):
                raise CacheWriteError(
                    "Cannot increment non-integer value",
                    key=key
                )

            new_value = int(current) + delta
            self._set_item(key, new_value, raw=True)
            return new_value

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            logger.debug(f"Cleared {count} items from memory store")
            return count

    def cleanup_expired(self) -> int:
        """
        Remove expired items.

        Returns:
            Number of items removed
        """
        if self.ttl_seconds is None:
            return 0

        with self._lock:
            expired_keys = [
                key for key, item in self._cache.items()
                if self._is_expired(item)
            ]

            for key in expired_keys:
                del self._cache[key]

            if expired_keys:
                logger.debug(f"Removed {len(expired_keys)} expired items")

            return len(expired_keys)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

            return {
                'store': self.name,
                'size': len(self._cache),
                'max_entries': self.max_entries,
                'store_hits': self._hits,
                'store_misses': self._misses,
                'store_hit_rate': round(hit_rate, 2),
                'evictions': self._evictions,
                'ttl_seconds': self.ttl_seconds
            }

    def _get_item(self, key: str, record: bool = True) -> Optional[CacheItem]:
        """
        Look up a live item and mark it recently used. Caller holds the lock.

        With record=False the lookup is left out of the hit/miss counters.
        """
        item = self._cache.get(key)

        if item is None:
            if record:
                self._misses += 1
            return None

        if self._is_expired(item):
            del self._cache[key]
            self._evictions += 1
            if record:
                self._misses += 1
            return None

        item.access_count += 1
        item.last_accessed = time.time()
        self._cache.move_to_end(key)

        if record:
            self._hits += 1
        return item

    def _set_item(self, key: str, value: Any, raw: bool) -> None:
        """Insert or replace an item. Caller holds the lock."""
        now = time.time()

        if key in self._cache:
            item = self._cache[key]
            item.value = value
            item.raw = raw
            item.created_at = now
            item.last_accessed = now
            self._cache.move_to_end(key)
            return

        self._cache[key] = CacheItem(value=value, created_at=now, raw=raw)

        if len(self._cache) > self.max_entries:
            self._evict_lru()

    def _is_expired(self, item: CacheItem) -> bool:
        if self.ttl_seconds is None:
            return False

        age = time.time() - item.created_at
        return age > self.ttl_seconds

    def _evict_lru(self) -> None:
        """Evict least recently used item."""
        if not self._cache:
            return

        # Items move to the end on access, so the first one is LRU
        lru_key = next(iter(self._cache))
        del self._cache[lru_key]
        self._evictions += 1

        logger.debug(f"Evicted LRU item: {lru_key}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return self._get_item(key) is not None


class _FillLock:
    """Per-key fill lock and the number of threads holding or awaiting it."""

    __slots__ = ('lock', 'users')

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


def _duplicate(value: Any) -> Any:
    """Deep copy of value, or value itself when it cannot be copied."""
    try:
        return copy.deepcopy(value)
    except (copy.Error, TypeError):
        return value


def _is_integer(value: Any) -> bool:
    """True for ints, excluding bools."""
    return isinstance(value, int) and not isinstance(value, bool)
