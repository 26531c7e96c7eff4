"""Fingerprinting, bounded selection and the banded signature index."""

from .heap_select import HeapSelect
from .lsh_index import BandIndex, IndexStats, RecordStore, SignatureLSH
from .simhash import band_slices, hamming_distance, simhash64

__all__ = [
    "HeapSelect",
    "BandIndex",
    "IndexStats",
    "RecordStore",
    "SignatureLSH",
    "band_slices",
    "hamming_distance",
    "simhash64",
]
