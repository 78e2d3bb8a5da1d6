"""
In-memory translation backend.

Translations are nested dicts per locale; keys are dotted paths:

    backend = SimpleBackend()
    backend.store_translations("en", {"greeting": "Hello, %{name}!"})
    backend.translate("en", "greeting", name="Ann")  # 'Hello, Ann!'
"""
import re
import threading
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..core.exceptions import InvalidLocaleError, MissingTranslationData
from ..core.interfaces import ITranslationBackend


logger = logging.getLogger(__name__)


KEY_SEPARATOR = "."
PLURAL_KEYS = ("zero", "one", "other")

_INTERPOLATION_PATTERN = re.compile(r"%\{(\w+)\}")

KeyType = Union[str, Sequence[str]]


class SimpleBackend(ITranslationBackend):
    """
    Thread-safe nested-dict translation store with lookup, defaults,
    pluralization and ``%{name}`` interpolation.

    Lookups return the stored objects themselves (a subtree lookup returns
    the live dict), so callers that mutate results should copy them.
    """

    def __init__(self, translations: Optional[Dict[str, Dict[str, Any]]] = None):
        self._translations: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        for locale, data in (translations or {}).items():
            self.store_translations(locale, data)

    def store_translations(self, locale: str, data: Dict[str, Any]) -> None:
        """
        Deep-merge translation data into a locale.

        Args:
            locale: Locale code
            data: Nested dict of translations
        """
        locale = _validate_locale(locale)
        with self._lock:
            target = self._translations.setdefault(locale, {})
            _deep_merge(target, data)

        logger.debug(f"Stored translations for {locale}: {len(data)} top-level keys")

    def available_locales(self) -> List[str]:
        with self._lock:
            return sorted(self._translations)

    def translate(
        self,
        locale: str,
        key: KeyType,
        scope: Optional[KeyType] = None,
        default: Any = None,
        count: Optional[int] = None,
        **values: Any
    ) -> Any:
        """
        Look up a translation.

        Args:
            locale: Locale code
            key: Dotted key or sequence of key parts
            scope: Key prefix (dotted or sequence)
            default: Fallback when key is missing. A list is tried entry by
                entry: strings are looked up as keys, anything else is used
                as a value. A callable is invoked with (locale, key, options).
                Any other value is returned as the translation.
            count: Selects a plural form and is available as ``%{count}``
            **values: Interpolation values

        Raises:
            MissingTranslationData: If key and every default are missing
        """
        locale = _validate_locale(locale)
        options = dict(values, scope=scope, default=default, count=count)

        entry = self._lookup(locale, key, scope)

        if entry is None and default is not None:
            entry = self._resolve_default(locale, key, scope, default, options)

        if entry is None:
            raise MissingTranslationData.for_lookup(
                locale,
                _normalize_key(key, scope),
                {k: v for k, v in options.items() if v is not None and not callable(v)}
            )

        if count is not None:
            entry = self._pluralize(locale, key, entry, count)
            values = dict(values, count=count)

        return _interpolate(entry, values)

    def _lookup(self, locale: str, key: KeyType, scope: Optional[KeyType]) -> Any:
        parts = _normalize_key(key, scope)
        with self._lock:
            node: Any = self._translations.get(locale)
            for part in parts:
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
        return node

    def _resolve_default(
        self,
        locale: str,
        key: KeyType,
        scope: Optional[KeyType],
        default: Any,
        options: Dict[str, Any]
    ) -> Any:
        candidates = default if isinstance(default, list) else [default]

        for candidate in candidates:
            if callable(candidate):
                result = candidate(locale, key, options)
            elif isinstance(candidate, str) and isinstance(default, list):
                result = self._lookup(locale, candidate, scope)
            else:
                result = candidate

            if result is not None:
                return result

        return None

    def _pluralize(self, locale: str, key: KeyType, entry: Any, count: int) -> Any:
        if not isinstance(entry, dict) or not any(k in entry for k in PLURAL_KEYS):
            return entry

        form = "zero" if count == 0 and "zero" in entry else ("one" if count == 1 else "other")
        if form not in entry:
            raise MissingTranslationData.for_lookup(
                locale,
                list(_normalize_key(key, None)) + [form],
                {'count': count}
            )
        return entry[form]


def _validate_locale(locale: Any) -> str:
    if not locale or not isinstance(locale, str):
        raise InvalidLocaleError("Locale must be a non-empty string", locale=locale)
    return locale


def _normalize_key(key: KeyType, scope: Optional[KeyType]) -> List[str]:
    """Split scope and key into a flat list of key parts."""
    parts: List[str] = []
    for item in (scope, key):
        if item is None:
            continue
        if isinstance(item, str):
            parts.extend(p for p in item.split(KEY_SEPARATOR) if p)
        else:
            for sub in item:
                parts.extend(p for p in str(sub).split(KEY_SEPARATOR) if p)
    return parts


def _deep_merge(target: Dict[str, Any], data: Dict[str, Any]) -> None:
    for key, value in data.items():
        key = str(key)
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        elif isinstance(value, dict):
            target[key] = {}
            _deep_merge(target[key], value)
        else:
            target[key] = value


def _interpolate(entry: Any, values: Dict[str, Any]) -> Any:
    if not isinstance(entry, str) or not values:
        return entry

    def replace(match: 're.Match') -> str:
        name = match.group(1)
        return str(values[name]) if name in values else match.group(0)

    return _INTERPOLATION_PATTERN.sub(replace, entry)
