"""
Core interfaces for the translation cache.

Two seams are defined here: the key-value store the cache writes to and the
translation backend the cache sits in front of.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union
import logging


logger = logging.getLogger(__name__)


T = TypeVar('T')

RawValue = Union[int, str, bytes]


# ============================================================================
# CACHE STORE INTERFACE
# ============================================================================

class ICacheStore(ABC):
    """
    Interface for key-value cache stores.

    Values written through ``write``/``fetch`` are marshalled by the store;
    values written through ``write_raw`` are kept verbatim so they can be
    incremented atomically.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name (e.g., 'memory', 'sqlite')."""
        pass

    @abstractmethod
    def fetch(self, key: str, fill: Callable[[], T]) -> T:
        """
        Return the value stored under key, filling it on a miss.

        Args:
            key: Cache key
            fill: Called when key is absent; its result is stored and returned

        Returns:
            Stored or freshly computed value

        Raises:
            CacheError: If the store cannot be read or written
            Exception: Whatever ``fill`` raises; nothing is stored in that case
        """
        pass

    @abstractmethod
    def read(self, key: str) -> Optional[Any]:
        """Return the marshalled value under key, or None when absent."""
        pass

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Store a marshalled value under key."""
        pass

    @abstractmethod
    def read_raw(self, key: str) -> Optional[RawValue]:
        """Return the raw value under key verbatim, or None when absent."""
        pass

    @abstractmethod
    def write_raw(self, key: str, value: int) -> None:
        """Store an integer verbatim, without marshalling."""
        pass

    @abstractmethod
    def increment(self, key: str, delta: int = 1) -> int:
        """
        Atomically add delta to the raw integer under key.

        An absent key counts as 0.

        Returns:
            The new value
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        pass

    @abstractmethod
    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        return {'store': self.name}

    def close(self) -> None:
        """Release store resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# ============================================================================
# TRANSLATION BACKEND INTERFACE
# ============================================================================

class ITranslationBackend(ABC):
    """Interface for translation lookup backends."""

    @abstractmethod
    def translate(self, locale: str, key: Any, **options: Any) -> Any:
        """
        Look up a translation.

        Args:
            locale: Locale code (e.g., 'en')
            key: Dotted key string or sequence of key parts
            **options: Lookup options (scope, default, count, interpolation values)

        Returns:
            Translated value (usually a string, may be a nested dict or list)

        Raises:
            MissingTranslationData: If no translation exists
        """
        pass

    @abstractmethod
    def store_translations(self, locale: str, data: Dict[str, Any]) -> None:
        """Merge nested translation data for a locale."""
        pass

    @abstractmethod
    def available_locales(self) -> List[str]:
        """Locales that have translation data."""
        pass
