"""
Module 02 - Hashing Utilities
Hash primitives for Merkle commitments and artifact integrity.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- Keccak-256 hashing (Ethereum flavour) for leaves and tree nodes
- Sorted-pair parent hashing compatible with on-chain MerkleProof verifiers
- SHA-256 hashing for artifact file integrity
- Hex encoding/decoding with 0x prefix

Protocol Notes:
- Keccak-256 is NOT NIST SHA3-256; the padding differs. Never substitute
  hashlib.sha3_256 here.
- Sorted-pair rule: parent = keccak256(min(a, b) || max(a, b)), comparing
  the two 32-byte values as unsigned big-endian integers.
"""
from __future__ import annotations

import hashlib

from eth_utils import keccak


HASH_SIZE = 32


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 digest of raw bytes.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def sha256(data: bytes) -> bytes:
    """Compute SHA-256 hash of raw bytes (artifact integrity only)."""
    return hashlib.sha256(data).digest()


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two byte sequences in the given order.

    parent = keccak256(left + right)
    """
    return keccak256(left + right)


def sort_pair(a: bytes, b: bytes) -> tuple[bytes, bytes]:
    """
    Order two hashes as unsigned big-endian integers.

    For equal-length values this is plain lexicographic byte order.
    """
    if int.from_bytes(a, "big") <= int.from_bytes(b, "big"):
        return a, b
    return b, a


def hash_sorted_pair(a: bytes, b: bytes) -> bytes:
    """
    Compute a parent hash under the sorted-pair rule.

    The result is independent of argument order:
    hash_sorted_pair(a, b) == hash_sorted_pair(b, a)
    """
    low, high = sort_pair(a, b)
    return hash_concat(low, high)


def to_hex(data: bytes) -> str:
    """
    Convert bytes to a lowercase hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert a 0x-prefixed hexadecimal string to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def from_hex32(hex_string: str) -> bytes:
    """
    Decode a 0x-prefixed 32-byte hash.

    Raises:
        ValueError: If the decoded value is not exactly 32 bytes
    """
    data = from_hex(hex_string)
    if len(data) != HASH_SIZE:
        raise ValueError(f"Expected {HASH_SIZE}-byte hash, got {len(data)} bytes")
    return data


__all__ = [
    "HASH_SIZE",
    "keccak256",
    "sha256",
    "hash_concat",
    "sort_pair",
    "hash_sorted_pair",
    "to_hex",
    "from_hex",
    "from_hex32",
]
