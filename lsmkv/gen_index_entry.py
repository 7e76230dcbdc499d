"""Index entries whose in-memory values are held through generational handles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .gen_ref import GenRefHandle, make_gen_ref


@dataclass(frozen=True)
class StorageReference:
    """Location of an entry inside an on-disk table."""

    file_path: str
    offset: int
    is_tombstone: bool = False


class GenIndexEntry:
    """A key's value (in memory) and/or its on-disk location."""

    def __init__(
        self,
        value: Optional[bytes] = None,
        storage_ref: Optional[StorageReference] = None,
    ) -> None:
        self._value: Optional[GenRefHandle[bytes]] = (
            None if value is None else make_gen_ref(bytes(value))
        )
        self._storage_ref = storage_ref

    @classmethod
    def _from_parts(
        cls,
        handle: Optional[GenRefHandle[bytes]],
        storage_ref: Optional[StorageReference],
    ) -> "GenIndexEntry":
        entry = cls.__new__(cls)
        entry._value = handle
        entry._storage_ref = storage_ref
        return entry

    def value(self) -> Optional[bytes]:
        """Return a copy of the in-memory value, or None."""
        return None if self._value is None else self._value.clone_data()

    def storage_ref(self) -> Optional[StorageReference]:
        """Return the on-disk location, or None."""
        return self._storage_ref

    def with_value(self, value: bytes) -> "GenIndexEntry":
        """Return a new entry holding ``value`` and this entry's location."""
        return self._from_parts(make_gen_ref(bytes(value)), self._storage_ref)

    def with_storage_ref(self, storage_ref: StorageReference) -> "GenIndexEntry":
        """Return a new entry with this entry's value and ``storage_ref``."""
        handle = None if self._value is None else self._value.clone()
        return self._from_parts(handle, storage_ref)

    def is_tombstone(self) -> bool:
        """Return True if the entry marks a deletion.

        With a storage reference its tombstone flag decides; without one, an
        entry holding no value is a tombstone.
        """
        if self._storage_ref is not None:
            return self._storage_ref.is_tombstone
        return self._value is None

    def is_value_stale(self) -> bool:
        """Return True if the value's shared data was updated since capture."""
        return self._value is not None and self._value.is_stale()

    def __copy__(self) -> "GenIndexEntry":
        handle = None if self._value is None else self._value.clone()
        return self._from_parts(handle, self._storage_ref)

    def __repr__(self) -> str:
        return (
            f"GenIndexEntry(value={self.value()!r}, "
            f"storage_ref={self._storage_ref!r})"
        )