"""An ordered, size-bounded in-memory table of string keys and byte values."""

from __future__ import annotations

import math
import threading
from typing import Iterable, List, Optional, Protocol, Tuple

from sortedcontainers import SortedDict

from .errors import CapacityExceededError
from .traits import POINTER_SIZE, byte_size


class _SizedTable(Protocol):
    size_bytes: int


class StringMemtable:
    """A thread-safe sorted memtable bounded by an accounted byte size."""

    def __init__(self, max_size_bytes: int) -> None:
        self._data: SortedDict = SortedDict()
        self._max_size_bytes = max_size_bytes
        self._size_bytes = 0
        self._lock = threading.RLock()

    def max_capacity(self) -> int:
        """Return the configured capacity in bytes."""
        return self._max_size_bytes

    def current_size(self) -> int:
        """Return the currently accounted size in bytes."""
        with self._lock:
            return self._size_bytes

    def is_full(self) -> bool:
        """Return True once the accounted size has reached capacity."""
        return self.current_size() >= self._max_size_bytes

    def insert(self, key: str, value: bytes) -> Optional[bytes]:
        """Store ``value`` under ``key`` and return the previous value, if any.

        Raises ``CapacityExceededError`` if the entry would not fit.
        """
        value = bytes(value)
        key_size = byte_size(key)
        entry_size = key_size + byte_size(value) + POINTER_SIZE
        with self._lock:
            old_value = self._data.get(key)
            if old_value is not None:
                old_size = key_size + byte_size(old_value) + POINTER_SIZE
                new_total = self._size_bytes - old_size + entry_size
            else:
                new_total = self._size_bytes + entry_size
            if new_total > self._max_size_bytes:
                raise CapacityExceededError()
            self._data[key] = value
            self._size_bytes = new_total
            return old_value

    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under ``key``, or None."""
        with self._lock:
            return self._data.get(key)

    def remove(self, key: str) -> Optional[bytes]:
        """Delete ``key`` and return its value, or None if it was absent."""
        with self._lock:
            old_value = self._data.pop(key, None)
            if old_value is not None:
                self._size_bytes -= byte_size(key) + byte_size(old_value)
            return old_value

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def is_empty(self) -> bool:
        """Return True when the table holds no entries."""
        return len(self) == 0

    def clear(self) -> None:
        """Remove every entry and reset the accounted size."""
        with self._lock:
            self._data.clear()
            self._size_bytes = 0

    def size_bytes(self) -> int:
        """Return the currently accounted size in bytes."""
        return self.current_size()

    def items(self) -> List[Tuple[str, bytes]]:
        """Return a snapshot of all entries in key order."""
        with self._lock:
            return list(self._data.items())

    def range(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        include_end: bool = False,
    ) -> List[Tuple[str, bytes]]:
        """Return entries with ``start <= key < end`` (or ``<= end``) in order.

        A bound of None leaves that side open.
        """
        if start is not None and end is not None and start > end:
            raise ValueError("range start is greater than range end")
        with self._lock:
            keys = self._data.irange(start, end, inclusive=(True, include_end))
            return [(key, self._data[key]) for key in keys]


def _ratio(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    return math.inf if numerator else math.nan


def identify_compaction_groups(
    sstables: Iterable[_SizedTable],
    size_ratio_threshold: float,
    min_group_size: int,
) -> List[List[int]]:
    """Group table indices of similar size for compaction.

    Tables are taken in ascending size order; a new group starts whenever a
    table exceeds the group's smallest size by more than
    ``size_ratio_threshold``. Groups smaller than ``min_group_size`` are
    dropped.
    """
    sizes = [table.size_bytes for table in sstables]
    if not sizes or len(sizes) < min_group_size:
        return []

    order = sorted(range(len(sizes)), key=sizes.__getitem__)
    groups: List[List[int]] = []
    current: List[int] = []
    smallest = sizes[order[0]]

    for idx in order:
        size = sizes[idx]
        if _ratio(size, smallest) > size_ratio_threshold and current:
            if len(current) >= min_group_size:
                groups.append(current)
            current = [idx]
            smallest = size
        else:
            current.append(idx)

    if len(current) >= min_group_size:
        groups.append(current)
    return groups