# snlsh/semantic/heap_select.py
from __future__ import annotations

import heapq
import itertools
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")
KeyFunc = Callable[[T], float]


class HeapSelect(Generic[T]):
    """Keep the ``k`` smallest items seen so far.

    Notes
    -----
    - Backed by a max-heap on ``key`` (stored negated in ``heapq``), so the
      worst kept item sits at the root.
    - ``add`` is O(log k), ``peek`` is O(1), ``sorted`` is O(k log k).
    - Once full, an item is only accepted if its key is strictly smaller than
      the current worst; equal keys never evict.
    """

    __slots__ = ("_k", "_key", "_heap", "_counter")

    def __init__(self, k: int, key: Optional[KeyFunc[T]] = None) -> None:
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        self._k = k
        self._key: KeyFunc[T] = key or (lambda item: item)  # type: ignore[assignment,return-value]
        # (negated key, -sequence, item); sequence keeps items out of comparisons
        self._heap: List[Tuple[float, int, T]] = []
        self._counter = itertools.count()

    @property
    def full(self) -> bool:
        return len(self._heap) >= self._k

    def add(self, item: T) -> bool:
        """Offer ``item``; return True if it was kept."""
        entry = (-self._key(item), -next(self._counter), item)
        if not self.full:
            heapq.heappush(self._heap, entry)
            return True
        if entry[0] > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def peek(self) -> T:
        """The worst item currently kept."""
        if not self._heap:
            raise IndexError("peek from an empty HeapSelect")
        return self._heap[0][2]

    def peek_key(self) -> float:
        if not self._heap:
            raise IndexError("peek from an empty HeapSelect")
        return -self._heap[0][0]

    def sorted(self) -> List[T]:
        """Kept items in ascending key order, earliest insertion first on ties."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], -e[1]))
        return [e[2] for e in ordered]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
