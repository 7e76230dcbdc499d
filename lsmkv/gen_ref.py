"""Reference-counted values carrying a generation number for staleness checks."""

from __future__ import annotations

import copy
import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class GenRef(Generic[T]):
    """A shared value with a reference count and an update generation.

    The reference count starts at 1, owned by the creator. The generation
    starts at 0 and increases by one on every :meth:`update`.
    """

    def __init__(self, data: T) -> None:
        self._data = data
        self._ref_count = 1
        self._generation = 0
        self._lock = threading.Lock()

    def get(self) -> T:
        """Return the stored data itself."""
        return self._data

    def generation(self) -> int:
        """Return the current generation number."""
        with self._lock:
            return self._generation

    def inc_ref(self) -> None:
        """Increment the reference count."""
        with self._lock:
            self._ref_count += 1

    def dec_ref(self) -> bool:
        """Decrement the reference count; return True if it was the last one."""
        with self._lock:
            was_last = self._ref_count == 1
            self._ref_count -= 1
            return was_last

    def update(self, new_data: T) -> T:
        """Replace the data, bump the generation and return the old data."""
        with self._lock:
            self._generation += 1
            old, self._data = self._data, new_data
            return old

    def clone_data(self) -> T:
        """Return a shallow copy of the stored data."""
        return copy.copy(self._data)


class GenRefHandle(Generic[T]):
    """A counted handle on a :class:`GenRef` that remembers its generation.

    Creating a handle increments the target's reference count; calling
    :meth:`release` (or leaving a ``with`` block) decrements it.
    """

    def __init__(self, gen_ref: GenRef[T]) -> None:
        gen_ref.inc_ref()
        self._target: Optional[GenRef[T]] = gen_ref
        self._generation = gen_ref.generation()

    def _live_target(self) -> GenRef[T]:
        if self._target is None:
            raise RuntimeError("handle has been released")
        return self._target

    def get(self) -> T:
        """Return the data the handle points to."""
        return self._live_target().get()

    def is_stale(self) -> bool:
        """Return True if the target was updated since this handle was made."""
        return self._live_target().generation() != self._generation

    def generation(self) -> int:
        """Return the generation recorded when the handle was created."""
        return self._generation

    def clone_data(self) -> T:
        """Return a shallow copy of the data the handle points to."""
        return self._live_target().clone_data()

    def clone(self) -> "GenRefHandle[T]":
        """Return a new handle on the same target, taking another reference."""
        return GenRefHandle(self._live_target())

    def release(self) -> bool:
        """Give up this handle's reference; return True if it was the last."""
        target = self._live_target()
        self._target = None
        return target.dec_ref()

    def __copy__(self) -> "GenRefHandle[T]":
        return self.clone()

    def __enter__(self) -> "GenRefHandle[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._target is not None:
            self.release()


def make_gen_ref(data: T) -> GenRefHandle[T]:
    """Wrap ``data`` in a new :class:`GenRef` and return a handle to it."""
    return GenRefHandle(GenRef(data))