# lsmkv

`lsmkv` is a small log-structured key-value index. String keys map to byte
values. Writes go into a size-bounded, sorted in-memory memtable. The index can
also read entries back from SSTable files on disk.

## Installation

```
pip install lsmkv
```

## Quick start

```python
from lsmkv.lsm_index import LsmIndex

index = LsmIndex(1024 * 1024, "data/db", 3600, True, 0.01)

index.insert("key1", b"\x01\x02\x03")
index.insert("key2", b"\x04\x05\x06")

assert index.get("key1") == b"\x01\x02\x03"

# Keys from "key1" up to, but not including, "key3"
pairs = index.range("key1", "key3", False)
# include_end=True makes the end bound inclusive; None leaves a side open
everything = index.range(None, None, False)

previous = index.remove("key2")   # returns the value that was stored
assert index.get("key2") is None

index.recover()   # reads entries from every *.db file in the base directory
index.clear()
index.shutdown()
```

The constructor creates the base directory and a `wal` subdirectory inside it.
`LsmIndex` can also be used as a context manager; leaving the block calls
`shutdown()`.

If an insert does not fit into the memtable, `insert` raises
`CapacityExceededError`. If a value has to be read from a table file that
cannot be read, `get` raises `OSError`. `range` leaves such entries out.
Memtable values take precedence over values from table files.

## The memtable

`StringMemtable` is a thread-safe, sorted in-memory table with a byte budget.
Sizes are counted as follows:

- a key counts its UTF-8 length plus 8 bytes;
- a value counts its length plus 16 bytes;
- each entry adds 8 bytes on top.

An insert that would go over the budget raises `CapacityExceededError`.

```python
from lsmkv.string_memtable import StringMemtable
from lsmkv.errors import CapacityExceededError

table = StringMemtable(1024)
table.insert("a", b"\x01")        # returns the previous value, or None
table.insert("b", b"\x02")

table.items()                     # [("a", b"\x01"), ("b", b"\x02")] in key order
table.range("a", "b", False)      # [("a", b"\x01")]
len(table), "a" in table, table.size_bytes(), table.is_full()

try:
    StringMemtable(10).insert("test_key", bytes(range(10)))
except CapacityExceededError:
    pass
```

`identify_compaction_groups(sstables, size_ratio_threshold, min_group_size)`
takes objects that have a `size_bytes` attribute and returns lists of their
indices. It walks the objects in ascending size order. It starts a new group
when an object is more than `size_ratio_threshold` times the smallest size in
the current group. Groups with fewer than `min_group_size` members are dropped.

## Other pieces

- `lsmkv.traits`: `byte_size`, `to_bytes` and `from_bytes`. These do the size
  accounting and the str/bytes conversions that the memtable uses.
- `lsmkv.skip_list_index.SkipListIndex`: a thread-safe ordered map. It offers
  `insert`, `get`, `remove`, `is_empty`, `in` and `len`.
- `lsmkv.gen_ref`: `GenRef`, `GenRefHandle` and `make_gen_ref`, which are
  reference-counted values with a generation number:
  - a handle's `is_stale()` reports whether the value was updated after the
    handle was made;
  - `release()`, or leaving a `with` block, gives up the handle's reference.
- `lsmkv.gen_index_entry`: `GenIndexEntry` and `StorageReference`. These are
  the per-key entries the index keeps. Each one holds an in-memory value, a
  location in a table file, or both, and reports tombstones.
- `lsmkv.sstable_io`: two functions for reading table files:
  - `read_sstable_entries(path)` yields `(key, value, storage_ref)` for each
    entry;
  - `load_value(storage_ref)` reads one value.
- `lsmkv.errors`: the exception types:
  - `MemtableError` and its subclasses `CapacityExceededError`,
    `KeyNotFoundError`, `WalFailureError`, `MemtableIOError` and `LockError`;
  - `LsmIndexError` and its subclass `InvalidOperationError`;
  - `SkipListError`.

## SSTable format

All integers are little-endian. The 28-byte header holds:

- an 8-byte magic number
- a 4-byte version
- an 8-byte entry count
- an 8-byte index offset

Entries follow the header. Each entry is a 4-byte key length, the key bytes, a
4-byte value length and the value bytes.

Reading a table raises `InvalidOperationError` in these cases:

- the index offset lies past the end of the file;
- a key is longer than 1 MiB;
- a value is longer than 10 MiB.

A file that ends early raises `OSError`.

## What it does not do

The package only reads table files; nothing in it writes them. `LsmIndex` has
no flush or compaction.

There is no write-ahead log and no crash recovery beyond `recover()`. The
`wal` directory is created but stays empty.

There are no Bloom filters. `compaction_interval_secs`, `use_bloom_filters` and
`bloom_filter_fpr` are stored on the index but have no effect.

## Running the tests

```
pip install -e ".[test]"
pytest
```