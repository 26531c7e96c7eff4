"""Shared data types for the signature index.

``Sentence`` is the key type: the raw line used for identity comparison plus
its precomputed token sequence. ``Record`` is one stored item and
``Neighbor`` is the read-only view handed back by queries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, Tuple, TypeVar

from .tokenize import Tokenizer, default_tokenizer

V = TypeVar("V")


@dataclass(frozen=True)
class Sentence:
    """A key: the original line plus the tokens derived from it.

    Attributes:
        line: Raw text, used for identity when excluding a query's own copy
        tokens: Ordered token sequence fed to the fingerprint generator
    """
    line: str
    tokens: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept any iterable of tokens but store an immutable tuple
        if not isinstance(self.tokens, tuple):
            object.__setattr__(self, "tokens", tuple(self.tokens))

    @classmethod
    def from_line(cls, line: str, tokenizer: Optional[Tokenizer] = None) -> "Sentence":
        """Tokenize ``line`` with ``tokenizer`` (word tokenizer by default)."""
        tokenize = tokenizer or default_tokenizer
        return cls(line=line, tokens=tuple(tokenize(line)))

    @classmethod
    def from_tokens(cls, tokens: Iterable[str], line: Optional[str] = None) -> "Sentence":
        """Build a key from tokens, using the space-joined tokens as its line."""
        tokens = tuple(tokens)
        return cls(line=" ".join(tokens) if line is None else line, tokens=tokens)

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class Record(Generic[V]):
    """One stored item; ``index`` is its insertion position."""
    index: int
    key: Sentence
    value: V
    fingerprint: int


@dataclass(frozen=True)
class Neighbor(Generic[V]):
    """A search hit.

    ``index`` is -1 and ``distance`` is infinite for the "nothing found"
    result returned by ``SignatureLSH.nearest``.
    """
    key: Optional[Sentence]
    value: Optional[V]
    index: int
    distance: float

    @classmethod
    def empty(cls) -> "Neighbor[Any]":
        return cls(key=None, value=None, index=-1, distance=math.inf)

    @property
    def found(self) -> bool:
        return self.index >= 0

    def __lt__(self, other: "Neighbor[Any]") -> bool:
        if not isinstance(other, Neighbor):
            return NotImplemented
        return (self.distance, self.index) < (other.distance, other.index)
