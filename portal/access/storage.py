"""
Narrow storage port used by every controller that persists state.

Values are JSON-encoded on write and decoded on read, so any backend only
has to store strings.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class StoragePort(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


def encode(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def decode(key: str, raw: str | None) -> Any | None:
    """Decode a stored value; corrupt entries read as absent."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Failed to parse stored value for key=%s; ignoring it", key)
        return None


class InMemoryStorage:
    """Dict-backed storage. Keeps encoded strings so reads see what a real backend would."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        return decode(key, self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = encode(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def put_raw(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def keys(self) -> list[str]:
        return sorted(self._data)


class NamespacedStorage:
    """Prefixes every key so several sessions can share one backend."""

    def __init__(self, inner: StoragePort, namespace: str) -> None:
        if not namespace:
            raise ValueError("namespace must be non-empty")
        self._inner = inner
        self._prefix = f"{namespace}:"

    @property
    def namespace(self) -> str:
        return self._prefix[:-1]

    def _key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str) -> Any | None:
        return self._inner.get(self._key(key))

    def set(self, key: str, value: Any) -> None:
        self._inner.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self._inner.remove(self._key(key))
