"""Reading entries and single values from on-disk sorted string tables.

A table starts with a fixed 28-byte header (magic ``u64``, version ``u32``,
entry count ``u64``, index offset ``u64``, all little-endian) followed by
the data section. Each entry there is a ``u32`` key length, the key bytes,
a ``u32`` value length and the value bytes.
"""

from __future__ import annotations

import logging
import os
import struct
from typing import BinaryIO, Iterator, Optional, Tuple, Union

from .errors import InvalidOperationError
from .gen_index_entry import StorageReference

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("<QIQQ")
_U32 = struct.Struct("<I")

HEADER_SIZE = _HEADER.size
MAX_KEY_LEN = 1024 * 1024
MAX_VALUE_LEN = 10 * 1024 * 1024

PathLike = Union[str, "os.PathLike[str]"]


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) < size:
        raise OSError(
            f"unexpected end of file while reading {what}: "
            f"wanted {size} bytes, got {len(data)}"
        )
    return data


def _read_u32(stream: BinaryIO, what: str) -> int:
    (number,) = _U32.unpack(_read_exact(stream, _U32.size, what))
    return number


def read_sstable_entries(
    path: PathLike,
) -> Iterator[Tuple[str, bytes, StorageReference]]:
    """Yield ``(key, value, storage_ref)`` for every entry in the table.

    Keys that are not valid UTF-8 are decoded with replacement characters.
    Raises ``InvalidOperationError`` when the header's index offset lies past
    the end of the file or a key or value length is implausibly large, and
    ``OSError`` when the file is missing or ends early. Entries read before
    a failure have already been yielded.
    """
    file_path = os.fspath(path)
    file_size = os.path.getsize(file_path)
    logger.debug("reading table %s (%d bytes)", file_path, file_size)

    with open(file_path, "rb") as stream:
        magic, version, entry_count, index_offset = _HEADER.unpack(
            _read_exact(stream, HEADER_SIZE, "header")
        )
        logger.debug(
            "header: magic=0x%X version=%d entries=%d index_offset=%d",
            magic,
            version,
            entry_count,
            index_offset,
        )
        if index_offset > file_size:
            raise InvalidOperationError(
                f"Invalid index offset {index_offset} exceeds file size {file_size}"
            )

        stream.seek(HEADER_SIZE)
        for number in range(entry_count):
            position = stream.tell()

            key_len = _read_u32(stream, f"key length of entry {number}")
            if key_len > MAX_KEY_LEN:
                raise InvalidOperationError(
                    f"Invalid key length {key_len} for entry {number}"
                )
            key_bytes = _read_exact(stream, key_len, f"key of entry {number}")
            key = key_bytes.decode("utf-8", errors="replace")

            value_len = _read_u32(stream, f"value length of entry {number}")
            if value_len > MAX_VALUE_LEN:
                raise InvalidOperationError(
                    f"Invalid value length {value_len} for entry {number}"
                )
            value = _read_exact(stream, value_len, f"value of entry {number}")

            yield key, value, StorageReference(file_path, position, False)


def load_value(storage_ref: StorageReference) -> Optional[bytes]:
    """Read the value of the entry that ``storage_ref`` points at.

    Returns None for a tombstone reference (after reading the entry).
    Raises ``OSError`` if the file cannot be opened or ends early.
    """
    logger.debug(
        "loading value from %s at offset %d",
        storage_ref.file_path,
        storage_ref.offset,
    )
    with open(storage_ref.file_path, "rb") as stream:
        stream.seek(storage_ref.offset)
        key_len = _read_u32(stream, "key length")
        stream.seek(key_len, os.SEEK_CUR)
        value_len = _read_u32(stream, "value length")
        value = _read_exact(stream, value_len, "value")

    if storage_ref.is_tombstone:
        return None
    return value