"""
Global cache version (epoch) handling.

Every cache key embeds the current epoch, so bumping the stored counter
makes all previously written entries unreachable without deleting them.
Each process keeps a short-lived local copy of the counter to avoid a store
read per lookup; invalidations become visible after at most one fetch
interval.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from ..core.interfaces import ICacheStore


logger = logging.getLogger(__name__)


VERSION_KEY = "i18n-version"
DEFAULT_FETCH_INTERVAL = 5.0


@dataclass(frozen=True)
class _EpochSnapshot:
    """Epoch value and the clock reading it was fetched at."""
    value: int
    fetched_at: float


class VersionManager:
    """
    Owns the cache epoch stored under VERSION_KEY.

    The (epoch, fetched_at) pair is swapped as one immutable snapshot under
    a lock. Two threads may both decide the snapshot is stale and reload it;
    that only costs a redundant store read.
    """

    def __init__(
        self,
        store: ICacheStore,
        fetch_interval: float = DEFAULT_FETCH_INTERVAL,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize version manager.

        Args:
            store: Store holding the epoch counter
            fetch_interval: Seconds a locally cached epoch stays valid
            clock: Monotonic time source (injectable for tests)
        """
        if fetch_interval < 0:
            raise ValueError("fetch_interval must be >= 0")

        self.store = store
        self.fetch_interval = fetch_interval
        self._clock = clock
        self._snapshot: Optional[_EpochSnapshot] = None
        self._lock = threading.Lock()

    def current_epoch(self) -> int:
        """
        Get the current cache epoch.

        Once the local copy is older than the fetch interval, the store key
        is initialized if needed and the epoch is re-read.

        Returns:
            Current epoch

        Raises:
            CacheError: If the store is unavailable
        """
        snapshot = self._get_snapshot()

        if snapshot is None or self._is_stale(snapshot):
            self.ensure_initialized()
            snapshot = None

        if snapshot is None:
            snapshot = _EpochSnapshot(
                value=self._read_epoch(),
                fetched_at=self._clock()
            )
            self._set_snapshot(snapshot)
            logger.debug(f"Cache epoch loaded: {snapshot.value}")

        return snapshot.value

    def invalidate(self) -> int:
        """
        Bump the stored epoch by one.

        The local copy is left alone; this process sees the new epoch once
        its copy goes stale (or after ``refresh()``).

        Returns:
            The new stored epoch
        """
        new_epoch = self.store.increment(VERSION_KEY)
        logger.info(f"Cache invalidated: epoch is now {new_epoch}")
        return new_epoch

    def ensure_initialized(self) -> None:
        """Write epoch 0 if the store has no epoch yet."""
        if self.store.read_raw(VERSION_KEY) is None:
            self.store.write_raw(VERSION_KEY, 0)
            logger.info(f"Initialized cache epoch in {self.store.name} store")

    def refresh(self) -> None:
        """Drop the local copy so the next lookup re-reads the store."""
        self._set_snapshot(None)

    def _read_epoch(self) -> int:
        raw = self.store.read_raw(VERSION_KEY)
        if raw is None:
            return 0
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Malformed cache epoch {raw!r}, using 0")
            return 0

    def _is_stale(self, snapshot: _EpochSnapshot) -> bool:
        return snapshot.fetched_at + self.fetch_interval <= self._clock()

    def _get_snapshot(self) -> Optional[_EpochSnapshot]:
        with self._lock:
            return self._snapshot

    def _set_snapshot(self, snapshot: Optional[_EpochSnapshot]) -> None:
        with self._lock:
            self._snapshot = snapshot
