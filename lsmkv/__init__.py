"""A log-structured key-value index with a bounded memtable that reads SSTable files."""

__version__ = "0.1.0"
__all__ = [
    "errors",
    "traits",
    "string_memtable",
    "skip_list_index",
    "gen_ref",
    "gen_index_entry",
    "sstable_io",
    "lsm_index",
]