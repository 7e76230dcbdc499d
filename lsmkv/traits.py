"""Size accounting and byte conversion for memtable keys and values."""

from __future__ import annotations

from typing import Union

# Size of a machine word used for length/capacity bookkeeping overhead.
POINTER_SIZE = 8

Sizeable = Union[str, bytes, bytearray, memoryview, int]


def byte_size(value: Sizeable) -> int:
    """Return the accounted size of ``value`` in bytes.

    Strings count their UTF-8 length plus one word; byte strings count their
    length plus two words; a single byte (an int in 0..255) counts as one.
    """
    if isinstance(value, str):
        return len(value.encode("utf-8")) + POINTER_SIZE
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(value) + POINTER_SIZE * 2
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 0xFF:
            return 1
        raise ValueError(f"integer {value} is not a single byte")
    raise TypeError(f"cannot size value of type {type(value).__name__}")


def to_bytes(value: Union[str, bytes, bytearray, memoryview]) -> bytes:
    """Return the byte representation of a string or byte string."""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"cannot convert value of type {type(value).__name__}")


def from_bytes(data: bytes, kind: type) -> Union[str, bytes]:
    """Rebuild a value of type ``kind`` (``str`` or ``bytes``) from ``data``.

    Raises ``ValueError`` when the bytes are not valid UTF-8 for ``str``.
    """
    if kind is str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(f"Failed to convert bytes to String: {exc}") from exc
    if kind is bytes:
        return bytes(data)
    raise TypeError(f"unsupported target type {kind!r}")