"""Default tokenizers for turning a raw line into an ordered token sequence.

The index itself never tokenizes anything; callers hand it a ``Sentence``
whose tokens were produced by any callable ``(str) -> Sequence[str]``. The
helpers here cover the common cases.
"""

from __future__ import annotations

import re
from typing import Callable, List, Sequence

Tokenizer = Callable[[str], Sequence[str]]

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def whitespace_tokenizer(line: str) -> List[str]:
    """Split on runs of whitespace, keeping punctuation attached."""
    return line.split()


def word_tokenizer(line: str, lowercase: bool = True) -> List[str]:
    """Extract word characters only, optionally lower-cased."""
    if lowercase:
        line = line.lower()
    return _WORD_RE.findall(line)


def shingle_tokenizer(n: int = 2, lowercase: bool = True) -> Tokenizer:
    """
    Build a tokenizer producing word n-grams joined by a single space.

    Lines shorter than ``n`` words fall back to their single words so that
    short sentences still get a non-empty fingerprint.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")

    def _tokenize(line: str) -> List[str]:
        words = word_tokenizer(line, lowercase=lowercase)
        if len(words) < n:
            return words
        return [" ".join(words[i:i + n]) for i in range(len(words) - n + 1)]

    return _tokenize


def default_tokenizer(line: str) -> List[str]:
    return word_tokenizer(line, lowercase=True)


TOKENIZERS = ("word", "whitespace", "shingles")


def get_tokenizer(name: str = "word", lowercase: bool = True, shingle_size: int = 2) -> Tokenizer:
    """Resolve a tokenizer by the name used in configuration files."""
    if name == "word":
        return lambda line: word_tokenizer(line, lowercase=lowercase)
    if name == "whitespace":
        if lowercase:
            return lambda line: whitespace_tokenizer(line.lower())
        return whitespace_tokenizer
    if name == "shingles":
        return shingle_tokenizer(shingle_size, lowercase=lowercase)
    raise ValueError(f"Unknown tokenizer {name!r}; expected one of {', '.join(TOKENIZERS)}")
