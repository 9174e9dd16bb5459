"""
Module 02 - Hashing Unit Tests
Tests for core/crypto/hashing.py

1. Keccak-256 known vectors (and that it is not NIST SHA3-256)
2. Sorted-pair parent hashing is symmetric
3. Hex helpers enforce the 0x prefix and 32-byte hashes
"""
import hashlib

import pytest

from core.crypto.hashing import (
    HASH_SIZE,
    from_hex,
    from_hex32,
    hash_concat,
    hash_sorted_pair,
    keccak256,
    sha256,
    sort_pair,
    to_hex,
)


KECCAK_EMPTY = "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
SHA3_EMPTY = "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"


class TestKeccak256:
    """Tests for the Keccak-256 primitive."""

    def test_empty_input_vector(self):
        """keccak256(b"") matches the Ethereum reference value."""
        assert keccak256(b"").hex() == KECCAK_EMPTY

    @pytest.mark.parametrize("data,expected", [
        (b"abc", "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"),
        (bytes(32), "290decd9548b62a8d60345a988386fc84ba6bc95484008f6362f93160ef3e563"),
    ])
    def test_reference_vectors(self, data, expected):
        assert keccak256(data).hex() == expected

    def test_not_nist_sha3(self):
        """Keccak-256 differs from hashlib.sha3_256."""
        assert hashlib.sha3_256(b"").hexdigest() == SHA3_EMPTY
        assert keccak256(b"").hex() != SHA3_EMPTY

    def test_output_size(self):
        """Digest is always 32 bytes."""
        for data in (b"", b"a", b"x" * 1000):
            assert len(keccak256(data)) == HASH_SIZE

    def test_deterministic(self):
        """Same input gives the same digest."""
        assert keccak256(b"merkle") == keccak256(b"merkle")
        assert keccak256(b"merkle") != keccak256(b"Merkle")


class TestSha256:
    """SHA-256 is only used for artifact integrity."""

    def test_matches_hashlib(self):
        assert sha256(b"abc") == hashlib.sha256(b"abc").digest()


class TestSortedPair:
    """Tests for sorted-pair parent hashing."""

    def test_symmetric(self):
        """hash_sorted_pair(a, b) == hash_sorted_pair(b, a)."""
        a = keccak256(b"a")
        b = keccak256(b"b")
        assert hash_sorted_pair(a, b) == hash_sorted_pair(b, a)

    def test_smaller_value_first(self):
        """The numerically smaller hash is concatenated first."""
        low = bytes(31) + b"\x01"
        high = b"\x01" + bytes(31)
        assert sort_pair(high, low) == (low, high)
        assert hash_sorted_pair(high, low) == hash_concat(low, high)

    def test_equal_values(self):
        """A node paired with itself hashes the doubled bytes."""
        a = keccak256(b"same")
        assert hash_sorted_pair(a, a) == keccak256(a + a)

    def test_concat_is_order_sensitive(self):
        """hash_concat keeps the given order."""
        a = keccak256(b"a")
        b = keccak256(b"b")
        assert hash_concat(a, b) != hash_concat(b, a)


class TestHexHelpers:
    """Tests for hex encoding and decoding."""

    def test_to_hex_lowercase_prefixed(self):
        assert to_hex(bytes.fromhex("DEADBEEF")) == "0xdeadbeef"

    def test_from_hex_roundtrip(self):
        data = keccak256(b"round")
        assert from_hex(to_hex(data)) == data

    def test_from_hex_requires_prefix(self):
        """Missing 0x prefix is rejected."""
        with pytest.raises(ValueError, match="0x"):
            from_hex("deadbeef")

    def test_from_hex_odd_length(self):
        with pytest.raises(ValueError, match="even length"):
            from_hex("0xabc")

    def test_from_hex_invalid_characters(self):
        with pytest.raises(ValueError, match="Invalid hex"):
            from_hex("0xzz")

    def test_from_hex32_length(self):
        """from_hex32 only accepts exactly 32 bytes."""
        assert len(from_hex32("0x" + "00" * 32)) == 32
        with pytest.raises(ValueError, match="32-byte"):
            from_hex32("0x" + "00" * 31)
