"""
Module 02 - Leaf Encoder
Canonical byte encoding and hashing of claims into Merkle leaves.

Owner: Protocol/Crypto Engineer
Module ID: M02

Leaf Rules (Hard Contracts, must match the on-chain verifier byte for byte):
1. Encoding (packed, default): address (20 bytes) || amount (uint256, 32 bytes
   big-endian) = 52 bytes, i.e. abi.encodePacked(address, uint256)
2. Encoding (abi): abi.encode(address, uint256) = 64 bytes, the layout used
   by OpenZeppelin StandardMerkleTree
3. Double hash: leaf = keccak256(keccak256(encoded))
   The second hash keeps 64-byte internal node preimages and leaf
   preimages from ever being confused.

Leaf encoding is pure and stateless: identical claim => identical leaf.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from eth_abi import encode as abi_encode
from eth_abi.packed import encode_packed
from eth_utils import to_canonical_address

from core.crypto.hashing import keccak256
from core.schemas.claims import Claim, ClaimSet


LEAF_TYPES: tuple[str, str] = ("address", "uint256")


class LeafEncoding(str, Enum):
    """Byte layout used to encode (address, amount) before hashing."""
    PACKED = "packed"  # abi.encodePacked(address, uint256)
    ABI = "abi"  # abi.encode(address, uint256)


@dataclass(frozen=True)
class Leaf:
    """
    A level-0 tree node.

    Attributes:
        claim_index: Position of the claim in the canonical claim ordering
        hash: 32-byte double-hashed leaf value
    """
    claim_index: int
    hash: bytes


def encode_claim(
    address: str,
    amount: int,
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> bytes:
    """
    Encode an (address, amount) pair into the verifier's byte layout.

    Args:
        address: 0x-prefixed account address (any valid casing)
        amount: Amount in smallest units (uint256)
        encoding: Byte layout

    Returns:
        52 bytes for PACKED, 64 bytes for ABI
    """
    account = to_canonical_address(address)
    values = (account, amount)
    if LeafEncoding(encoding) is LeafEncoding.ABI:
        return abi_encode(list(LEAF_TYPES), values)
    return encode_packed(list(LEAF_TYPES), values)


def hash_leaf(
    address: str,
    amount: int,
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> bytes:
    """
    Compute the double-hashed leaf for an (address, amount) pair.

    leaf = keccak256(keccak256(encode(address, amount)))
    """
    return keccak256(keccak256(encode_claim(address, amount, encoding)))


def claim_leaf_hash(claim: Claim, encoding: LeafEncoding = LeafEncoding.PACKED) -> bytes:
    """Leaf hash of a validated claim."""
    return hash_leaf(claim.address, claim.amount, encoding)


def encode_leaves(
    claims: ClaimSet | Sequence[Claim],
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> list[Leaf]:
    """
    Encode every claim into a leaf, preserving claim order.

    Returns:
        One Leaf per claim; leaf i corresponds to claim i
    """
    return [
        Leaf(claim_index=i, hash=claim_leaf_hash(claim, encoding))
        for i, claim in enumerate(claims)
    ]


__all__ = [
    "LEAF_TYPES",
    "LeafEncoding",
    "Leaf",
    "encode_claim",
    "hash_leaf",
    "claim_leaf_hash",
    "encode_leaves",
]
