"""
SQLite-backed cache store shared by every process using the same file.
"""
import pickle
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar
import logging

from ..core.exceptions import (
    CacheDatabaseError,
    CacheReadError,
    CacheWriteError,
    error_context,
)
from ..core.interfaces import ICacheStore, RawValue


logger = logging.getLogger(__name__)

T = TypeVar('T')


class SQLiteStore(ICacheStore):
    """
    Thread-safe SQLite store.

    Marshalled values are pickled into the ``value`` column; raw integers
    live in the ``raw`` column so ``increment`` can update them in place.
    ``fetch`` returns a filled value that cannot be pickled without storing
    it; ``write`` raises CacheWriteError for one. Every driver error is
    raised as CacheDatabaseError.
    """

    def __init__(self, db_path: Path, ttl_seconds: Optional[float] = None):
        """
        Initialize SQLite store.

        Args:
            db_path: Database file (created with its parent directory)
            ttl_seconds: Time-to-live for entries (None = no expiration)
        """
        self.db_path = Path(db_path)
        self.ttl_seconds = ttl_seconds
        self._local = threading.local()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._db_errors("initializing schema"):
            self._init_schema(self._get_connection())

    @property
    def name(self) -> str:
        return "sqlite"

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                self.db_path,
                isolation_level=None,
                timeout=30.0
            )
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn.row_factory = sqlite3.Row

        return self._local.conn

    @contextmanager
    def _transaction(self):
        """Explicit transaction context."""
        conn = self._get_connection()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def _db_errors(self, operation: str):
        return error_context(
            operation,
            CacheDatabaseError,
            logger,
            db_path=str(self.db_path)
        )

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS cache (
                key TEXT PRIMARY KEY,
                value BLOB,
                raw TEXT,
                created_at REAL NOT NULL
            )
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_created_at ON cache(created_at)")

        logger.info(f"Cache schema initialized: {self.db_path}")

    def fetch(self, key: str, fill: Callable[[], T]) -> T:
        found, value = self._lookup(key)
        if found:
            return value

        # Outside any transaction: fill may be slow and may raise
        value = fill()
        try:
            blob = _marshal(key, value)
        except CacheWriteError as e:
            logger.warning(f"Not caching {key}: {e}")
            return value

        self._write_blob(key, blob)
        return value

    def read(self, key: str) -> Optional[Any]:
        _, value = self._lookup(key)
        return value

    def write(self, key: str, value: Any) -> None:
        self._write_blob(key, _marshal(key, value))

    def _write_blob(self, key: str, blob: bytes) -> None:
        with self._db_errors("writing cache entry"):
            with self._transaction() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO cache (key, value, raw, created_at) "
                    "VALUES (?, ?, NULL, ?)",
                    (key, sqlite3.Binary(blob), time.time())
                )

    def read_raw(self, key: str) -> Optional[RawValue]:
        row = self._get_row(key)
        if row is None:
            return None
        if row['raw'] is not None:
            return row['raw']
        # Marshalled entry read as raw: hand back the undecoded payload
        return bytes(row['value'])

    def write_raw(self, key: str, value: int) -> None:
        with self._db_errors("writing raw value"):
            with self._transaction() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO cache (key, value, raw, created_at) "
                    "VALUES (?, NULL, ?, ?)",
                    (key, str(value), time.time())
                )

    def increment(self, key: str, delta: int = 1) -> int:
        """
        Increment a raw counter inside one write transaction.

        Raises:
            CacheWriteError: If the stored value is not an integer
        """
        with self._db_errors("incrementing counter"):
            with self._transaction() as conn:
                row = conn.execute(
                    "SELECT raw, value FROM cache WHERE key = ?", (key,)
                ).fetchone()

                if row is None:
                    current = 0
                else:
                    current = _parse_int(row['raw'])
                    if current is None:
                        raise CacheWriteError(
                            "Cannot increment non-integer value",
                            key=key
                        )

                new_value = current + delta
                conn.execute(
                    "INSERT OR REPLACE INTO cache (key, value, raw, created_at) "
                    "VALUES (?, NULL, ?, ?)",
                    (key, str(new_value), time.time())
                )
                return new_value

    def delete(self, key: str) -> bool:
        with self._db_errors("deleting cache entry"):
            with self._transaction() as conn:
                cur = conn.execute("DELETE FROM cache WHERE key = ?", (key,))
                return cur.rowcount > 0

    def clear(self) -> int:
        with self._db_errors("clearing cache"):
            with self._transaction() as conn:
                cur = conn.execute("DELETE FROM cache")
                count = cur.rowcount

        logger.info(f"Cleared {count} cache entries")
        return count

    def evict_expired(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        if self.ttl_seconds is None:
            return 0

        cutoff = time.time() - self.ttl_seconds
        with self._db_errors("evicting expired entries"):
            with self._transaction() as conn:
                cur = conn.execute(
                    "DELETE FROM cache WHERE created_at < ? AND raw IS NULL",
                    (cutoff,)
                )
                count = cur.rowcount

        if count > 0:
            logger.info(f"Evicted {count} expired entries")

        return count

    def get_stats(self) -> Dict[str, Any]:
        with self._db_errors("reading statistics"):
            conn = self._get_connection()
            total = conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0]

        size_bytes = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            'store': self.name,
            'total_entries': total,
            'size_mb': round(size_bytes / (1024 * 1024), 2),
            'db_path': str(self.db_path),
            'ttl_seconds': self.ttl_seconds
        }

    def close(self) -> None:
        """Close this thread's connection."""
        if hasattr(self._local, 'conn') and self._local.conn:
            self._local.conn.close()
            self._local.conn = None

    def _get_row(self, key: str) -> Optional[sqlite3.Row]:
        with self._db_errors("reading cache entry"):
            conn = self._get_connection()
            row = conn.execute(
                "SELECT value, raw, created_at FROM cache WHERE key = ?", (key,)
            ).fetchone()

        if row is not None and self._is_expired(row):
            self.delete(key)
            return None
        return row

    def _lookup(self, key: str) -> Tuple[bool, Any]:
        """Return (found, value) for a marshalled entry."""
        row = self._get_row(key)
        if row is None or row['value'] is None:
            return False, None

        try:
            return True, pickle.loads(row['value'])
        except Exception as e:
            raise CacheReadError(f"Cannot unmarshal cache entry: {e}", key=key) from e

    def _is_expired(self, row: sqlite3.Row) -> bool:
        # Raw counters never expire; the epoch must outlive the entries
        if self.ttl_seconds is None or row['raw'] is not None:
            return False
        return time.time() - row['created_at'] > self.ttl_seconds


def _parse_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _marshal(key: str, value: Any) -> bytes:
    try:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise CacheWriteError(f"Cannot marshal value: {e}", key=key) from e
