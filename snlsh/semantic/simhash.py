# snlsh/semantic/simhash.py
"""
64-bit SimHash fingerprints and the bit arithmetic around them.

Each token is hashed with 64-bit MurmurHash3 (seed 0) and casts one vote per
bit position: +1 where the hash bit is set, -1 where it is clear. Output bit
``i`` is 1 when the summed votes for ``i`` are >= 0. The sum is commutative,
so token order never changes the fingerprint.
"""
from __future__ import annotations

from typing import Iterable, List

import mmh3
import numpy as np

BITS = 64
# Changing the seed changes every fingerprint ever produced.
SIMHASH_SEED = 0
MASK64 = (1 << BITS) - 1


def token_hash64(token: str) -> int:
    """Unsigned 64-bit MurmurHash3 of the token's UTF-8 bytes.

    Lone surrogates (from surrogateescape decoding) are encoded as-is.
    """
    return mmh3.hash64(token.encode("utf-8", "surrogatepass"), seed=SIMHASH_SEED, signed=False)[0]


def simhash64(tokens: Iterable[str]) -> int:
    """
    Compute the SimHash fingerprint of a token sequence.

    Returns
    -------
    int in [0, 2**64); 0 for an empty sequence.
    """
    hashes = [token_hash64(t) for t in tokens]
    if not hashes:
        return 0

    # (n, 8) little-endian bytes -> (n, 64) bits with column i == bit i
    raw = np.array(hashes, dtype="<u8").view(np.uint8).reshape(-1, 8)
    bits = np.unpackbits(raw, axis=1, bitorder="little")

    # +1 per set bit, -1 per clear bit
    votes = 2 * bits.sum(axis=0, dtype=np.int64) - len(hashes)

    # Ties resolve to 1
    out_bits = (votes >= 0).astype(np.uint8)
    return int.from_bytes(np.packbits(out_bits, bitorder="little").tobytes(), "little")


def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits between two 64-bit fingerprints."""
    return bin((a ^ b) & MASK64).count("1")


def slice_width(bands: int) -> int:
    return BITS // bands


def slice_mask(bands: int) -> int:
    return (1 << slice_width(bands)) - 1


def band_slice(fingerprint: int, band: int, bands: int) -> int:
    """
    Extract the bit window owned by ``band``.

    Band 0 owns the least significant ``64 // bands`` bits, band 1 the next
    window up, and so on.
    """
    width = slice_width(bands)
    return (fingerprint >> (band * width)) & slice_mask(bands)


def band_slices(fingerprint: int, bands: int) -> List[int]:
    """All slice values of ``fingerprint``, band 0 first."""
    return [band_slice(fingerprint, b, bands) for b in range(bands)]


def format_fingerprint(fingerprint: int) -> str:
    """Zero-padded hex rendering, e.g. ``0x00ff...``."""
    return f"0x{fingerprint:016x}"
