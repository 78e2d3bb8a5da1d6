"""Core exceptions and interfaces."""
from .exceptions import (
    TranslationSystemError,
    MissingTranslationData,
    CacheError,
    FingerprintError,
    ConfigurationError,
)
from .interfaces import ICacheStore, ITranslationBackend

__all__ = [
    "TranslationSystemError",
    "MissingTranslationData",
    "CacheError",
    "FingerprintError",
    "ConfigurationError",
    "ICacheStore",
    "ITranslationBackend",
]
