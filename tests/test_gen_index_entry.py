import copy
import dataclasses

import pytest

from lsmkv.gen_index_entry import GenIndexEntry, StorageReference


def test_gen_index_entry_basic():
    entry = GenIndexEntry(bytes([1, 2, 3]), None)
    assert entry.value() == bytes([1, 2, 3])
    assert entry.storage_ref() is None
    assert not entry.is_tombstone()


def test_gen_index_entry_with_storage_ref():
    storage_ref = StorageReference(file_path="test.sst", offset=123, is_tombstone=False)
    entry = GenIndexEntry(None, storage_ref)
    assert entry.value() is None
    assert entry.storage_ref().file_path == "test.sst"
    assert entry.storage_ref().offset == 123
    assert not entry.is_tombstone()


def test_gen_index_entry_tombstone():
    storage_ref = StorageReference(file_path="test.sst", offset=123, is_tombstone=True)
    entry = GenIndexEntry(None, storage_ref)
    assert entry.is_tombstone()


def test_gen_index_entry_update():
    entry = GenIndexEntry(bytes([1, 2, 3]), None)
    updated = entry.with_value(bytes([4, 5, 6]))
    assert updated.value() == bytes([4, 5, 6])
    assert entry.value() == bytes([1, 2, 3])


def test_gen_index_entry_clone():
    entry = GenIndexEntry(bytes([1, 2, 3]), None)
    clone = copy.copy(entry)
    assert clone.value() == bytes([1, 2, 3])


def test_empty_entry_is_tombstone():
    entry = GenIndexEntry(None, None)
    assert entry.is_tombstone()
    assert entry.value() is None


def test_tombstone_flag_overrides_value():
    storage_ref = StorageReference("a.db", 0, is_tombstone=True)
    entry = GenIndexEntry(b"data", storage_ref)
    assert entry.is_tombstone()


def test_with_value_keeps_storage_ref():
    storage_ref = StorageReference("a.db", 28)
    entry = GenIndexEntry(b"x", storage_ref).with_value(b"y")
    assert entry.value() == b"y"
    assert entry.storage_ref() == storage_ref


def test_with_storage_ref_keeps_value():
    entry = GenIndexEntry(b"abc").with_storage_ref(StorageReference("b.db", 7))
    assert entry.value() == b"abc"
    assert entry.storage_ref() == StorageReference("b.db", 7, False)


def test_value_accepts_bytearray():
    entry = GenIndexEntry(bytearray(b"\x01\x02"))
    assert entry.value() == b"\x01\x02"


def test_fresh_value_is_not_stale():
    assert GenIndexEntry(b"v").is_value_stale() is False
    assert GenIndexEntry(None).is_value_stale() is False


def test_storage_reference_is_frozen():
    storage_ref = StorageReference("a.db", 1)
    assert storage_ref.is_tombstone is False
    with pytest.raises(dataclasses.FrozenInstanceError):
        storage_ref.offset = 2