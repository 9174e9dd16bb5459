"""
Core cryptographic utilities.

Module 02 provides the hash primitives shared by the leaf encoder,
the Merkle tree builder and artifact integrity checks.
"""
from .hashing import (
    HASH_SIZE,
    keccak256,
    sha256,
    hash_concat,
    sort_pair,
    hash_sorted_pair,
    to_hex,
    from_hex,
    from_hex32,
)

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
