import struct

import pytest

from lsmkv.errors import InvalidOperationError
from lsmkv.gen_index_entry import StorageReference
from lsmkv.sstable_io import (
    HEADER_SIZE,
    MAX_KEY_LEN,
    MAX_VALUE_LEN,
    load_value,
    read_sstable_entries,
)

MAGIC = 0x1234
VERSION = 1


def _encode_entry(key: bytes, value: bytes) -> bytes:
    return (
        struct.pack("<I", len(key))
        + key
        + struct.pack("<I", len(value))
        + value
    )


def _build_table(entries, count=None, index_offset=None, raw_data=None):
    data = raw_data
    if data is None:
        data = b"".join(_encode_entry(k, v) for k, v in entries)
    if count is None:
        count = len(entries)
    if index_offset is None:
        index_offset = HEADER_SIZE + len(data)
    header = struct.pack("<QIQQ", MAGIC, VERSION, count, index_offset)
    return header + data


@pytest.fixture
def table_path(tmp_path):
    def write(content: bytes) -> str:
        path = tmp_path / "sstable_test.db"
        path.write_bytes(content)
        return str(path)

    return write


SAMPLE = [
    (b"key1", bytes([1, 2, 3])),
    (b"key2", bytes([4, 5, 6])),
    (b"key3", bytes([7, 8, 9])),
]


def test_first_entry_follows_28_byte_header(table_path):
    header = struct.pack("<QIQQ", MAGIC, VERSION, 1, 28 + 10)
    path = table_path(header + _encode_entry(b"ab", b""))
    ((key, value, ref),) = list(read_sstable_entries(path))
    assert (key, value) == ("ab", b"")
    assert ref.offset == 28


def test_reads_all_entries_in_order(table_path):
    path = table_path(_build_table(SAMPLE))
    entries = list(read_sstable_entries(path))
    assert [(k, v) for k, v, _ in entries] == [
        (k.decode(), v) for k, v in SAMPLE
    ]


def test_offsets_point_at_entry_starts(table_path):
    path = table_path(_build_table(SAMPLE))
    refs = [ref for _, _, ref in read_sstable_entries(path)]
    assert refs[0].offset == HEADER_SIZE
    first_len = len(_encode_entry(*SAMPLE[0]))
    assert refs[1].offset == HEADER_SIZE + first_len
    assert all(ref.file_path == path for ref in refs)
    assert not any(ref.is_tombstone for ref in refs)


def test_load_value_round_trip(table_path):
    path = table_path(_build_table(SAMPLE))
    for key, value, ref in read_sstable_entries(path):
        assert load_value(ref) == value


def test_load_value_tombstone_returns_none(table_path):
    path = table_path(_build_table(SAMPLE))
    assert load_value(StorageReference(path, HEADER_SIZE, True)) is None


def test_empty_table_yields_nothing(table_path):
    path = table_path(_build_table([]))
    assert list(read_sstable_entries(path)) == []


def test_empty_value(table_path):
    path = table_path(_build_table([(b"k", b"")]))
    entries = list(read_sstable_entries(path))
    assert entries[0][:2] == ("k", b"")
    assert load_value(entries[0][2]) == b""


def test_invalid_utf8_key_is_replaced(table_path):
    path = table_path(_build_table([(b"a\xffb", b"v")]))
    ((key, value, _),) = list(read_sstable_entries(path))
    assert key == "a\ufffdb"
    assert value == b"v"


def test_index_offset_past_end_is_rejected(table_path):
    content = _build_table(SAMPLE)
    path = table_path(_build_table(SAMPLE, index_offset=len(content) + 1))
    with pytest.raises(InvalidOperationError):
        list(read_sstable_entries(path))


def test_oversized_key_length_is_rejected(table_path):
    raw = struct.pack("<I", MAX_KEY_LEN + 1)
    path = table_path(_build_table([], count=1, raw_data=raw))
    with pytest.raises(InvalidOperationError):
        list(read_sstable_entries(path))


def test_oversized_value_length_is_rejected(table_path):
    raw = struct.pack("<I", 1) + b"k" + struct.pack("<I", MAX_VALUE_LEN + 1)
    path = table_path(_build_table([], count=1, raw_data=raw))
    with pytest.raises(InvalidOperationError):
        list(read_sstable_entries(path))


def test_truncated_entry_raises_after_good_entries(table_path):
    good = _encode_entry(*SAMPLE[0])
    raw = good + struct.pack("<I", 10) + b"abc"
    path = table_path(_build_table([], count=2, raw_data=raw))
    reader = read_sstable_entries(path)
    first = next(reader)
    assert first[:2] == ("key1", SAMPLE[0][1])
    with pytest.raises(OSError):
        next(reader)


def test_truncated_header_raises(table_path):
    path = table_path(b"short")
    with pytest.raises(OSError):
        list(read_sstable_entries(path))


def test_missing_file_raises(tmp_path):
    missing = str(tmp_path / "absent.db")
    with pytest.raises(FileNotFoundError):
        list(read_sstable_entries(missing))
    with pytest.raises(FileNotFoundError):
        load_value(StorageReference(missing, HEADER_SIZE, False))


def test_load_value_past_end_raises(table_path):
    content = _build_table(SAMPLE)
    path = table_path(content)
    with pytest.raises(OSError):
        load_value(StorageReference(path, len(content), False))