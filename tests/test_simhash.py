"""
Tests for SimHash fingerprinting and band slicing.
"""

import itertools
import random

import mmh3
import pytest

from snlsh.semantic.simhash import (
    BITS,
    band_slice,
    band_slices,
    format_fingerprint,
    hamming_distance,
    simhash64,
    slice_mask,
    slice_width,
    token_hash64,
)


class TestTokenHash:
    """Tests for the per-token hash primitive."""

    def test_deterministic(self):
        """Same token hashes to the same value every time."""
        assert token_hash64("hello") == token_hash64("hello")

    def test_unsigned_64_bit(self):
        """Hashes are unsigned and fit in 64 bits."""
        for token in ["", "a", "hello", "ünïcödé", "x" * 1000]:
            h = token_hash64(token)
            assert 0 <= h < 2 ** 64

    def test_distinct_tokens_differ(self):
        """Different tokens give different hashes."""
        assert token_hash64("cat") != token_hash64("dog")

    def test_lone_surrogate_is_hashed(self):
        """Tokens decoded with surrogateescape still hash instead of raising."""
        h = token_hash64("caf\udce9")
        assert 0 <= h < 2 ** 64
        assert h != token_hash64("caf")

    def test_plain_text_matches_utf8_bytes(self):
        """Well-formed text hashes exactly its strict UTF-8 encoding."""
        for token in ["é", "hello", "日本"]:
            expected = mmh3.hash64(token.encode("utf-8"), seed=0, signed=False)[0]
            assert token_hash64(token) == expected


class TestSimhash64:
    """Tests for the fingerprint generator."""

    def test_empty_sequence_is_zero(self):
        """An empty token sequence fingerprints to 0."""
        assert simhash64([]) == 0
        assert simhash64(()) == 0

    def test_surrogate_tokens_fingerprint(self):
        """Lone surrogates in tokens do not abort fingerprinting."""
        fp = simhash64(["ok", "\udcff"])
        assert 0 <= fp < 2 ** 64
        assert fp == simhash64(["\udcff", "ok"])

    def test_deterministic(self):
        """Repeated calls give the same fingerprint."""
        tokens = ["the", "quick", "brown", "fox"]
        assert simhash64(tokens) == simhash64(list(tokens))

    def test_order_independent(self):
        """Every permutation of the tokens gives the same fingerprint."""
        tokens = ["alpha", "beta", "gamma", "delta"]
        expected = simhash64(tokens)
        for perm in itertools.permutations(tokens):
            assert simhash64(perm) == expected

    def test_order_independent_with_duplicates(self):
        """Shuffling a multiset with repeated tokens keeps the fingerprint."""
        tokens = ["a", "b", "a", "c", "b", "a", "d"]
        expected = simhash64(tokens)
        rnd = random.Random(7)
        for _ in range(20):
            shuffled = tokens[:]
            rnd.shuffle(shuffled)
            assert simhash64(shuffled) == expected

    def test_single_token_equals_its_hash(self):
        """With one token every vote is +1 or -1, so the hash is copied through."""
        for token in ["a", "word", "sentence-token"]:
            assert simhash64([token]) == token_hash64(token)

    def test_repeated_single_token(self):
        """Repeating one token does not change the majority."""
        assert simhash64(["same"] * 5) == token_hash64("same")

    def test_two_tokens_tie_resolves_to_one(self):
        """With two tokens, disagreeing bits tie at zero and become 1."""
        ha, hb = token_hash64("left"), token_hash64("right")
        assert simhash64(["left", "right"]) == ha | hb

    def test_three_tokens_majority(self):
        """With three tokens each bit follows the majority."""
        hs = [token_hash64(t) for t in ["x", "y", "z"]]
        expected = 0
        for i in range(BITS):
            ones = sum((h >> i) & 1 for h in hs)
            if ones >= 2:
                expected |= 1 << i
        assert simhash64(["x", "y", "z"]) == expected

    def test_fits_in_64_bits(self):
        """Fingerprints are in [0, 2**64)."""
        fp = simhash64(["many", "different", "tokens", "here"])
        assert 0 <= fp < 2 ** 64

    def test_accepts_generator(self):
        """Any iterable of tokens works."""
        tokens = ["one", "two", "three"]
        assert simhash64(t for t in tokens) == simhash64(tokens)

    def test_similar_inputs_are_closer(self):
        """Sharing most tokens gives a smaller distance than sharing none."""
        base = [f"w{i}" for i in range(40)]
        near = base[:-2] + ["x1", "x2"]
        far = [f"v{i}" for i in range(40)]
        fp = simhash64(base)
        assert hamming_distance(fp, simhash64(near)) < hamming_distance(fp, simhash64(far))


class TestHammingDistance:
    """Tests for Hamming distance."""

    def test_identical(self):
        assert hamming_distance(0xDEADBEEF, 0xDEADBEEF) == 0

    def test_known_values(self):
        assert hamming_distance(0b1010, 0b0101) == 4
        assert hamming_distance(0, 1) == 1
        assert hamming_distance(0, 2 ** 64 - 1) == 64

    def test_symmetric(self):
        a, b = 0x0123456789ABCDEF, 0xFEDCBA9876543210
        assert hamming_distance(a, b) == hamming_distance(b, a)


class TestBandSlices:
    """Tests for splitting a fingerprint into band windows."""

    FP = 0x0123456789ABCDEF

    def test_slice_width_and_mask(self):
        assert slice_width(4) == 16
        assert slice_mask(4) == 0xFFFF
        assert slice_width(32) == 2
        assert slice_mask(32) == 0b11

    def test_two_bands(self):
        assert band_slices(self.FP, 2) == [0x89ABCDEF, 0x01234567]

    def test_four_bands(self):
        assert band_slices(self.FP, 4) == [0xCDEF, 0x89AB, 0x4567, 0x0123]

    def test_eight_bands(self):
        assert band_slices(self.FP, 8) == [0xEF, 0xCD, 0xAB, 0x89, 0x67, 0x45, 0x23, 0x01]

    def test_single_band_lookup(self):
        assert band_slice(self.FP, 0, 4) == 0xCDEF
        assert band_slice(self.FP, 3, 4) == 0x0123

    @pytest.mark.parametrize("bands", [2, 4, 8, 16, 32])
    def test_slices_partition_all_bits(self, bands):
        """Slices reassemble into the original fingerprint with no overlap or gap."""
        width = BITS // bands
        rnd = random.Random(bands)
        for fp in [0, 2 ** 64 - 1, self.FP] + [rnd.getrandbits(64) for _ in range(20)]:
            slices = band_slices(fp, bands)
            assert len(slices) == bands
            rebuilt = 0
            for b, s in enumerate(slices):
                assert 0 <= s < (1 << width)
                rebuilt |= s << (b * width)
            assert rebuilt == fp

    @pytest.mark.parametrize("bands", [2, 4, 8, 16, 32])
    def test_windows_are_disjoint_and_cover(self, bands):
        width = BITS // bands
        windows = [((1 << width) - 1) << (b * width) for b in range(bands)]
        union = 0
        for i, w in enumerate(windows):
            for other in windows[i + 1:]:
                assert w & other == 0
            union |= w
        assert union == 2 ** 64 - 1


def test_format_fingerprint():
    assert format_fingerprint(0) == "0x0000000000000000"
    assert format_fingerprint(0xABC) == "0x0000000000000abc"
