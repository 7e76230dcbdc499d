"""A thread-safe ordered key-value index."""

from __future__ import annotations

import threading
from typing import Any, Hashable, Optional

from sortedcontainers import SortedDict


class SkipListIndex:
    """An ordered map guarded by a lock, safe to share between threads."""

    def __init__(self) -> None:
        self._map: SortedDict = SortedDict()
        self._lock = threading.Lock()

    def insert(self, key: Hashable, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        with self._lock:
            self._map[key] = value

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the value under ``key``, or None."""
        with self._lock:
            return self._map.get(key)

    def remove(self, key: Hashable) -> None:
        """Delete ``key`` if present."""
        with self._lock:
            self._map.pop(key, None)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._map

    def __len__(self) -> int:
        with self._lock:
            return len(self._map)

    def is_empty(self) -> bool:
        """Return True when the index holds no entries."""
        return len(self) == 0