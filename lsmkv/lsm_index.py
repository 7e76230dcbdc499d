"""A log-structured key-value index over a memtable and on-disk tables."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sortedcontainers import SortedDict

from .gen_index_entry import GenIndexEntry
from .sstable_io import load_value, read_sstable_entries
from .string_memtable import StringMemtable

logger = logging.getLogger(__name__)

TABLE_SUFFIX = ".db"


class LsmIndex:
    """An ordered key-value index combining a memtable with table references.

    Recent writes live in a bounded :class:`StringMemtable`; every key also
    has an entry in an ordered index that holds its in-memory value and/or
    the location of its record in an on-disk table.
    """

    def __init__(
        self,
        capacity: int,
        base_path: Union[str, "os.PathLike[str]"],
        compaction_interval_secs: Optional[int] = None,
        use_bloom_filters: bool = True,
        bloom_filter_fpr: float = 0.01,
    ) -> None:
        self.base_path = os.fspath(base_path)
        os.makedirs(self.base_path, exist_ok=True)
        os.makedirs(os.path.join(self.base_path, "wal"), exist_ok=True)

        self.compaction_interval_secs = compaction_interval_secs
        self.use_bloom_filters = use_bloom_filters
        self.bloom_filter_fpr = bloom_filter_fpr

        self._memtable = StringMemtable(capacity)
        self._index: SortedDict = SortedDict()
        self._lock = threading.RLock()

    def insert(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``.

        Raises ``CapacityExceededError`` if the memtable cannot hold it.
        """
        value = bytes(value)
        with self._lock:
            self._memtable.insert(key, value)
            self._index[key] = GenIndexEntry(value, None)

    def remove(self, key: str) -> Optional[bytes]:
        """Delete ``key`` and return the value it had, or None."""
        with self._lock:
            current = self.get(key)
            self._memtable.remove(key)
            self._index.pop(key, None)
            return current

    def get(self, key: str) -> Optional[bytes]:
        """Return the value for ``key``, or None if it is absent or deleted.

        Raises ``OSError`` if the value must be read from a table that
        cannot be read.
        """
        with self._lock:
            value = self._memtable.get(key)
            if value is not None:
                return value
            entry: Optional[GenIndexEntry] = self._index.get(key)
        if entry is None:
            return None
        in_memory = entry.value()
        if in_memory is not None:
            return in_memory
        storage_ref = entry.storage_ref()
        if storage_ref is None or storage_ref.is_tombstone:
            return None
        return load_value(storage_ref)

    def range(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        include_end: bool = False,
    ) -> List[Tuple[str, bytes]]:
        """Return ``(key, value)`` pairs with ``start <= key < end`` in order.

        With ``include_end`` the end bound is inclusive; a bound of None
        leaves that side open. Deleted entries and entries whose table
        cannot be read are left out; memtable values take precedence.
        """
        with self._lock:
            snapshot = [
                (key, self._index[key])
                for key in self._index.irange(start, end, inclusive=(True, include_end))
            ]

        result: List[Tuple[str, bytes]] = []
        for key, entry in snapshot:
            storage_ref = entry.storage_ref()
            if storage_ref is not None:
                if storage_ref.is_tombstone:
                    continue
                try:
                    value = load_value(storage_ref)
                except OSError as exc:
                    logger.debug("skipping %r: %s", key, exc)
                    continue
                if value is not None:
                    result.append((key, value))
            else:
                value = entry.value()
                if value is not None:
                    result.append((key, value))

        return [
            (key, newer if (newer := self._memtable.get(key)) is not None else value)
            for key, value in result
        ]

    def recover(self) -> None:
        """Rebuild index entries from every table file in the base directory.

        Raises ``InvalidOperationError`` or ``OSError`` for a malformed table.
        """
        tables = sorted(
            path
            for path in Path(self.base_path).iterdir()
            if path.is_file() and path.suffix == TABLE_SUFFIX
        )
        if not tables:
            logger.debug("no tables found in %s", self.base_path)
            return
        for table in tables:
            logger.debug("recovering from %s", table)
            self._update_index_from_table(str(table))

    def _update_index_from_table(self, table_path: str) -> None:
        for key, value, storage_ref in read_sstable_entries(table_path):
            with self._lock:
                self._index[key] = GenIndexEntry(value, storage_ref)

    def clear(self) -> None:
        """Remove every key from the memtable and the index."""
        with self._lock:
            self._memtable.clear()
            self._index.clear()

    def shutdown(self) -> None:
        """Release the index; nothing is pending, so this is a no-op."""

    def __enter__(self) -> "LsmIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()