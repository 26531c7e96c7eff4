# snlsh/semantic/lsh_index.py
"""
Banded LSH index over 64-bit SimHash fingerprints.

Each fingerprint is cut into ``bands`` equal, contiguous bit windows. Every
band keeps its own table from window value to the indices of the items that
produced it. A query only ranks items that agree with it on at least one
window, which turns an O(n) scan into a lookup of a few buckets. Items that
differ in every window are never compared; that loss of recall is the price
of the speed-up.

The index is in-memory, append-only and assumes a single writer. Callers
that query from several threads while inserting must serialize access.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import (
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    MutableSequence,
    Optional,
    Set,
    Tuple,
    TypeVar,
    TYPE_CHECKING,
)

from ..core.errors import InvalidArgumentError, InvalidConfigurationError
from ..core.types import Neighbor, Record, Sentence
from .heap_select import HeapSelect
from .simhash import BITS, hamming_distance, simhash64

if TYPE_CHECKING:
    from ..config import LSHConfig

logger = logging.getLogger(__name__)

V = TypeVar("V")

MIN_BANDS = 2
MAX_BANDS = 32


# ----------------------------
# Band tables
# ----------------------------

class BandIndex:
    """
    ``bands`` independent tables mapping a slice value to a bucket.

    A bucket is the list of item indices, in insertion order, whose
    fingerprint has that value in the band's bit window.
    """

    __slots__ = ("_bands", "_width", "_mask", "_tables")

    def __init__(self, bands: int) -> None:
        if isinstance(bands, bool) or not isinstance(bands, int):
            raise InvalidConfigurationError(
                f"Invalid band count: {bands!r}", parameter="bands", value=bands
            )
        if bands < MIN_BANDS or bands > MAX_BANDS:
            raise InvalidConfigurationError(
                f"Invalid band count: {bands} (must be between {MIN_BANDS} and {MAX_BANDS})",
                parameter="bands",
                value=bands,
            )
        if BITS % bands != 0:
            raise InvalidConfigurationError(
                f"Invalid band count: {bands} (must divide {BITS} evenly)",
                parameter="bands",
                value=bands,
            )
        self._bands = bands
        self._width = BITS // bands
        self._mask = (1 << self._width) - 1
        self._tables: List[Dict[int, List[int]]] = [{} for _ in range(bands)]

    @property
    def bands(self) -> int:
        return self._bands

    @property
    def slice_width(self) -> int:
        return self._width

    @property
    def slice_mask(self) -> int:
        return self._mask

    def slice(self, fingerprint: int, band: int) -> int:
        """Value of ``fingerprint`` inside the bit window owned by ``band``."""
        return (fingerprint >> (band * self._width)) & self._mask

    def insert(self, index: int, fingerprint: int) -> None:
        """Register ``index`` in one bucket per band."""
        for band, table in enumerate(self._tables):
            table.setdefault(self.slice(fingerprint, band), []).append(index)

    def candidates(self, fingerprint: int) -> Set[int]:
        """Union of every bucket the fingerprint falls into, deduplicated."""
        found: Set[int] = set()
        for band, table in enumerate(self._tables):
            bucket = table.get(self.slice(fingerprint, band))
            if bucket:
                found.update(bucket)
        return found

    def buckets(self) -> Iterator[Tuple[int, int, List[int]]]:
        """Yield ``(band, slice_value, indices)`` for every non-empty bucket."""
        for band, table in enumerate(self._tables):
            for slice_value, indices in table.items():
                yield band, slice_value, indices


# ----------------------------
# Record storage
# ----------------------------

class RecordStore(Generic[V]):
    """Append-only list of records; a record's index is its position."""

    __slots__ = ("_records",)

    def __init__(self) -> None:
        self._records: List[Record[V]] = []

    def append(self, key: Sentence, value: V, fingerprint: int) -> int:
        index = len(self._records)
        self._records.append(Record(index=index, key=key, value=value, fingerprint=fingerprint))
        return index

    def get(self, index: int) -> Record[V]:
        if index < 0:
            raise IndexError(f"record index out of range: {index}")
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record[V]]:
        return iter(self._records)


# ----------------------------
# Stats
# ----------------------------

@dataclass
class IndexStats:
    records: int = 0
    bands: int = 0
    total_buckets: int = 0
    non_singleton_buckets: int = 0
    avg_bucket_size: float = 0.0
    max_bucket_size: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "records": float(self.records),
            "bands": float(self.bands),
            "total_buckets": float(self.total_buckets),
            "non_singleton_buckets": float(self.non_singleton_buckets),
            "avg_bucket_size": float(self.avg_bucket_size),
            "max_bucket_size": float(self.max_bucket_size),
        }


# ----------------------------
# Public index
# ----------------------------

class SignatureLSH(Generic[V]):
    """
    Nearest-neighbour search over sentences by SimHash + banded LSH.

    Parameters
    ----------
    bands:
        Number of bit windows, in [2, 32] and dividing 64. More bands means
        narrower windows, more candidates and better recall.
    identical_excluded:
        Skip stored items whose line equals the query's line. Identity is by
        text, not by index, so every stored copy of the same line is skipped.
    """

    def __init__(self, bands: int = 4, identical_excluded: bool = True) -> None:
        self._bands = BandIndex(bands)
        self._store: RecordStore[V] = RecordStore()
        self.identical_excluded = identical_excluded
        logger.debug(
            "Created SignatureLSH with %d bands of %d bits",
            bands, self._bands.slice_width,
        )

    @classmethod
    def from_config(cls, config: "LSHConfig") -> "SignatureLSH[V]":
        return cls(bands=config.bands, identical_excluded=config.identical_excluded)

    # ----------------------------
    # Introspection
    # ----------------------------
    @property
    def bands(self) -> int:
        return self._bands.bands

    @property
    def band_index(self) -> BandIndex:
        return self._bands

    def __len__(self) -> int:
        return len(self._store)

    def record(self, index: int) -> Record[V]:
        return self._store.get(index)

    def fingerprint_of(self, index: int) -> int:
        return self._store.get(index).fingerprint

    def records(self) -> Iterator[Record[V]]:
        return iter(self._store)

    # ----------------------------
    # Insertion
    # ----------------------------
    def put(self, key: Sentence, value: V) -> int:
        """Fingerprint ``key``, store it with ``value`` and index it; return its index."""
        fingerprint = simhash64(key.tokens)
        index = self._store.append(key, value, fingerprint)
        self._bands.insert(index, fingerprint)
        return index

    def put_all(self, items: Iterable[Tuple[Sentence, V]]) -> List[int]:
        indices = [self.put(key, value) for key, value in items]
        logger.debug("Inserted %d records (total %d)", len(indices), len(self._store))
        return indices

    # ----------------------------
    # Queries
    # ----------------------------
    def candidates(self, query: Sentence) -> Set[int]:
        """Indices of stored items sharing at least one band slice with ``query``."""
        return self._bands.candidates(simhash64(query.tokens))

    def knn(self, query: Sentence, k: int) -> List[Neighbor[V]]:
        """
        The ``k`` candidates closest to ``query`` by Hamming distance.

        Returns at most ``k`` neighbours in ascending distance; fewer when the
        candidate set holds fewer than ``k`` eligible items.
        """
        if k < 1:
            raise InvalidArgumentError(f"Invalid k: {k}", argument="k", value=k)

        fpq = simhash64(query.tokens)
        candidates = self._bands.candidates(fpq)

        heap: HeapSelect[Neighbor[V]] = HeapSelect(k, key=lambda n: n.distance)
        sentinel: Neighbor[V] = Neighbor.empty()
        for _ in range(k):
            heap.add(sentinel)

        hit = 0
        # Ascending index order so that equal distances favour earlier inserts
        for index in sorted(candidates):
            record = self._store.get(index)
            if self._is_excluded(query, record):
                continue
            distance = hamming_distance(fpq, record.fingerprint)
            if distance < heap.peek_key():
                heap.add(Neighbor(record.key, record.value, index, distance))
                hit += 1

        logger.debug("knn(k=%d): %d candidates, %d hits", k, len(candidates), hit)

        neighbors = heap.sorted()
        if hit < k:
            neighbors = neighbors[:hit]
        return neighbors

    def nearest(self, query: Sentence) -> Neighbor[V]:
        """The closest candidate, or ``Neighbor.empty()`` when there is none."""
        neighbors = self.knn(query, 1)
        if neighbors:
            return neighbors[0]
        return Neighbor.empty()

    def range(
        self,
        query: Sentence,
        radius: float,
        neighbors: Optional[MutableSequence[Neighbor[V]]] = None,
    ) -> MutableSequence[Neighbor[V]]:
        """
        Append every candidate within ``radius`` of ``query`` to ``neighbors``.

        No ranking is performed; neighbours come out in candidate iteration
        order. ``neighbors`` is returned (a new list if none was given).
        """
        if math.isnan(radius) or radius <= 0:
            raise InvalidArgumentError(
                f"Invalid radius: {radius}", argument="radius", value=radius
            )
        if neighbors is None:
            neighbors = []

        fpq = simhash64(query.tokens)
        candidates = self._bands.candidates(fpq)
        before = len(neighbors)
        for index in candidates:
            record = self._store.get(index)
            if self._is_excluded(query, record):
                continue
            distance = hamming_distance(fpq, record.fingerprint)
            if distance <= radius:
                neighbors.append(Neighbor(record.key, record.value, index, distance))

        logger.debug(
            "range(radius=%s): %d candidates, %d within radius",
            radius, len(candidates), len(neighbors) - before,
        )
        return neighbors

    def _is_excluded(self, query: Sentence, record: Record[V]) -> bool:
        return self.identical_excluded and record.key.line == query.line

    # ----------------------------
    # Stats
    # ----------------------------
    def stats(self) -> IndexStats:
        bucket_sizes = [len(indices) for _, _, indices in self._bands.buckets()]
        return IndexStats(
            records=len(self._store),
            bands=self.bands,
            total_buckets=len(bucket_sizes),
            non_singleton_buckets=sum(1 for s in bucket_sizes if s > 1),
            avg_bucket_size=(sum(bucket_sizes) / len(bucket_sizes)) if bucket_sizes else 0.0,
            max_bucket_size=max(bucket_sizes, default=0),
        )
