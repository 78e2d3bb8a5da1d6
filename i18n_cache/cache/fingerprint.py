"""
Deterministic cache keys for translation lookups.

Keys hash a canonical JSON rendering of the lookup inputs instead of
relying on object identity, so two option mappings with the same content
always produce the same key. Values with no canonical form (callables,
arbitrary objects) raise FingerprintError; callers are expected to skip
caching for such lookups.
"""
import dataclasses
import hashlib
import json
from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import quote

from ..core.exceptions import FingerprintError


KEY_PREFIX = "i18n"
KEY_SEPARATOR = "/"


def canonicalize(value: Any) -> Any:
    """
    Convert value into a JSON-compatible structure with a stable ordering.

    Containers other than lists are tagged so that e.g. a tuple and a list
    with the same items do not collide.

    Raises:
        FingerprintError: If value has no canonical form
    """
    # bool before int: bool is an int subclass
    if value is None or isinstance(value, (bool, str)):
        return value

    if isinstance(value, Enum):
        return {"__enum__": f"{type(value).__qualname__}.{value.name}"}

    if isinstance(value, (int, float)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return {"__bytes__": bytes(value).hex()}

    if isinstance(value, Mapping):
        items = [[canonicalize(k), canonicalize(v)] for k, v in value.items()]
        items.sort(key=lambda item: _dumps(item[0]))
        return {"__map__": items}

    if isinstance(value, list):
        return [canonicalize(item) for item in value]

    if isinstance(value, tuple):
        return {"__tuple__": [canonicalize(item) for item in value]}

    if isinstance(value, (set, frozenset)):
        members = [canonicalize(item) for item in value]
        members.sort(key=_dumps)
        return {"__set__": members}

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return {"__dataclass__": type(value).__qualname__, "fields": canonicalize(fields)}

    raise FingerprintError(
        "Value cannot be fingerprinted",
        value_type=type(value).__name__
    )


def stable_hash(value: Any) -> str:
    """
    SHA256 hex digest of the canonical form of value.

    Raises:
        FingerprintError: If value has no canonical form or refers to itself
    """
    try:
        canonical = canonicalize(value)
    except RecursionError as e:
        raise FingerprintError(
            "Value is self-referencing or nested too deeply",
            value_type=type(value).__name__
        ) from e
    return hashlib.sha256(_dumps(canonical).encode('utf-8')).hexdigest()


def build_fingerprint(
    namespace: Optional[str],
    locale: Any,
    key: Any,
    options: Optional[Mapping[str, Any]],
    epoch: int
) -> str:
    """
    Build the cache key for a lookup.

    Format: ``i18n/<namespace>/<locale>/<key hash>/<options hash>/<epoch>``.
    Namespace and locale are percent-encoded, so a separator inside them
    cannot shift segments. An unset namespace leaves its segment empty.

    Raises:
        FingerprintError: If key or options cannot be canonicalized
    """
    return KEY_SEPARATOR.join([
        KEY_PREFIX,
        quote(namespace or "", safe=""),
        quote(str(locale), safe=""),
        stable_hash(key),
        stable_hash(dict(options or {})),
        str(epoch),
    ])


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
