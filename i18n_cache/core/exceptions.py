"""
Custom exceptions for the translation cache.
Provides clear error hierarchy and meaningful error messages.
"""

from contextlib import contextmanager
from typing import Optional, Dict, Any, Type
import logging

__all__ = [
    # Base
    'TranslationSystemError',
    # Lookup
    'TranslationError', 'MissingTranslationData', 'InvalidLocaleError',
    # Cache
    'CacheError', 'CacheReadError', 'CacheWriteError', 'CacheDatabaseError',
    'FingerprintError',
    # Configuration
    'ConfigurationError', 'ValidationError', 'InvalidConfigError',
    # Utilities
    'error_context', 'wrap_error',
]


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class TranslationSystemError(Exception):
    """
    Base exception for all translation cache errors.

    All custom exceptions inherit from this class for unified error handling.
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize exception with message and optional context.

        Args:
            message: Error message
            **context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context."""
        if not self.context:
            return self.message

        context_str = ', '.join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context
        }

    def __reduce__(self):
        # Rebuilt without calling __init__: subclass signatures may differ
        return (_restore_error, (type(self), self.args), self.__dict__.copy())


def _restore_error(cls: Type[TranslationSystemError], args: tuple) -> TranslationSystemError:
    error = cls.__new__(cls)
    error.args = args
    return error


# ============================================================================
# LOOKUP EXCEPTIONS
# ============================================================================

class TranslationError(TranslationSystemError):
    """Raised when a translation lookup fails."""
    pass


class MissingTranslationData(TranslationError):
    """
    Raised when no translation exists for a locale/key pair.

    Instances are cached like ordinary values, so they must survive
    ``copy.copy`` and ``pickle``. Both restore the instance ``__dict__``
    onto a new instance without calling ``__init__``.
    """

    def __init__(
        self,
        message: str,
        locale: Optional[str] = None,
        key: Any = None,
        options: Optional[Dict[str, Any]] = None,
        **context: Any
    ) -> None:
        super().__init__(message, **context)
        self.locale = locale
        self.key = key
        self.options = options or {}

    @classmethod
    def for_lookup(
        cls,
        locale: str,
        key: Any,
        options: Optional[Dict[str, Any]] = None
    ) -> 'MissingTranslationData':
        """Build the standard 'translation missing' error for a lookup."""
        if isinstance(key, (list, tuple)):
            key = '.'.join(str(part) for part in key)
        return cls(
            f"translation missing: {locale}.{key}",
            locale=locale,
            key=key,
            options=options
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingTranslationData):
            return NotImplemented
        return (
            self.message == other.message
            and self.locale == other.locale
            and self.key == other.key
        )

    def __hash__(self) -> int:
        return hash((self.message, self.locale, str(self.key)))


class InvalidLocaleError(TranslationError):
    """Raised when a locale identifier is empty or malformed."""

    def __init__(self, message: str, locale: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, locale=locale, **context)
        self.locale = locale


# ============================================================================
# CACHE EXCEPTIONS
# ============================================================================

class CacheError(TranslationSystemError):
    """Base exception for cache store errors."""
    pass


class CacheReadError(CacheError):
    """Raised when a cache store read fails."""
    pass


class CacheWriteError(CacheError):
    """Raised when a cache store write or increment fails."""
    pass


class CacheDatabaseError(CacheError):
    """Raised for SQLite or database errors in cache operations."""

    def __init__(self, message: str, db_path: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, db_path=db_path, **context)
        self.db_path = db_path


class FingerprintError(CacheError):
    """Raised when lookup inputs cannot be reduced to a stable fingerprint."""

    def __init__(self, message: str, value_type: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, value_type=value_type, **context)
        self.value_type = value_type


# ============================================================================
# CONFIGURATION EXCEPTIONS
# ============================================================================

class ConfigurationError(TranslationSystemError):
    """Raised when component configuration is invalid."""

    def __init__(self, message: str, component: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, component=component, **context)
        self.component = component


class ValidationError(TranslationSystemError):
    """Base exception for validation errors."""

    def __init__(self, message: str, field: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, field=field, **context)
        self.field = field


class InvalidConfigError(ValidationError):
    """Raised when configuration values are invalid."""
    pass


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def wrap_error(
    error: Exception,
    error_class: Type[TranslationSystemError],
    message: Optional[str] = None,
    **context: Any
) -> TranslationSystemError:
    """
    Wrap an exception in a custom exception type.

    Args:
        error: Original exception
        error_class: Exception class to wrap with
        message: Optional custom message
        **context: Context passed to the new exception

    Returns:
        Wrapped exception with ``__cause__`` set to the original

    Raises:
        TypeError: If error_class is not a TranslationSystemError subclass
    """
    if not issubclass(error_class, TranslationSystemError):
        raise TypeError(
            f"error_class must be subclass of TranslationSystemError, "
            f"got {error_class.__name__}"
        )

    error_msg = f"{message}: {error}" if message else str(error)
    wrapped = error_class(error_msg, **context)
    wrapped.__cause__ = error
    return wrapped


@contextmanager
def error_context(
    operation: str,
    error_class: Type[TranslationSystemError] = TranslationSystemError,
    logger: Optional[logging.Logger] = None,
    **context: Any
):
    """
    Context manager for consistent error handling and wrapping.

    Args:
        operation: Name of operation being performed
        error_class: Exception class to wrap errors with
        logger: Optional logger for error logging
        **context: Context passed to the wrapped exception

    Raises:
        error_class: Wrapped exception if error occurs

    Example:
        >>> with error_context("reading cache entry", CacheReadError):
        ...     store.read(key)
    """
    try:
        yield
    except TranslationSystemError:
        # Already typed, just reraise
        raise
    except KeyboardInterrupt:
        raise
    except Exception as e:
        if logger:
            logger.error(f"Error during {operation}: {e}", exc_info=True)

        raise wrap_error(e, error_class, f"Error during {operation}", **context)
