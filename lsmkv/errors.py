"""Exception types raised by the memtable, skip-list and LSM index layers."""

from __future__ import annotations


class MemtableError(Exception):
    """Base class for every failure reported by a memtable."""


class CapacityExceededError(MemtableError):
    """The memtable has reached its capacity limit."""

    def __init__(self) -> None:
        super().__init__("Memtable capacity exceeded")


class KeyNotFoundError(MemtableError):
    """The requested key was not found in the memtable."""

    def __init__(self) -> None:
        super().__init__("Key not found in memtable")


class _WrappedOSError(MemtableError):
    """A memtable failure caused by an underlying I/O error."""

    _prefix = "I/O error"

    def __init__(self, cause: BaseException) -> None:
        if not isinstance(cause, OSError):
            cause = OSError(str(cause))
        super().__init__(f"{self._prefix}: {cause}")
        self.cause: OSError = cause
        self.__cause__ = cause


class WalFailureError(_WrappedOSError):
    """An error occurred while operating on the write-ahead log.

    Any non-``OSError`` cause is wrapped in a generic ``OSError`` carrying
    its message.
    """

    _prefix = "WAL error"


class MemtableIOError(_WrappedOSError):
    """An error occurred during I/O operations."""

    _prefix = "I/O error"


class LockError(MemtableError):
    """An error occurred while acquiring a lock."""

    def __init__(self) -> None:
        super().__init__("Failed to acquire lock")


class SkipListError(Exception):
    """A failure in a skip-list operation (missing key or invalid operation)."""

    def __init__(self, message: str = "Key not found") -> None:
        super().__init__(message)
        self.message = message


class LsmIndexError(Exception):
    """Base class for failures reported by the LSM index."""


class InvalidOperationError(LsmIndexError):
    """The LSM index was asked to do something it cannot do."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message