"""
Module 02 - Merkle Proofs Convenience Wrappers
Claim-level API over the core tree functions.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides class-based interfaces:
- MerkleProver: Generate proofs for claims
- MerkleVerifier: Verify proofs the way a claim verifier contract does

These are convenience wrappers around merkle_tree.py and leaves.py.
"""
from __future__ import annotations

from typing import Sequence

from core.crypto.hashing import from_hex32
from core.merkle.leaves import LeafEncoding, encode_leaves, hash_leaf
from core.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    OddNodePolicy,
    compute_proof_root,
    verify_merkle_proof,
)
from core.schemas.claims import Claim, ClaimSet


class MerkleProver:
    """
    Convenience class for building trees and proofs from claims.

    Example:
        >>> tree = MerkleProver.build_tree(claim_set)
        >>> proof = MerkleProver.prove(tree, index=1)
        >>> proof.leaf == tree.leaves[1]
        True
    """

    @staticmethod
    def build_tree(
        claims: ClaimSet | Sequence[Claim],
        encoding: LeafEncoding = LeafEncoding.PACKED,
        odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
    ) -> MerkleTree:
        """
        Encode claims into leaves and build the tree.

        Raises:
            ValueError: If claims is empty
        """
        leaves = [leaf.hash for leaf in encode_leaves(claims, encoding)]
        return MerkleTree.from_leaves(leaves, odd_nodes)

    @staticmethod
    def prove(tree: MerkleTree, index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the leaf at the given index.

        Raises:
            IndexError: If index is out of range
        """
        return tree.proof(index)

    @staticmethod
    def compute_root(
        claims: ClaimSet | Sequence[Claim],
        encoding: LeafEncoding = LeafEncoding.PACKED,
        odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
    ) -> bytes:
        """Compute the 32-byte Merkle root for a claim sequence."""
        return MerkleProver.build_tree(claims, encoding, odd_nodes).root


class MerkleVerifier:
    """
    Convenience class for verifying Merkle proofs.

    Example:
        >>> MerkleVerifier.verify_claim(address, amount, proof_hex, root_hex)
        True
    """

    @staticmethod
    def verify(proof: MerkleProof) -> bool:
        """Verify a Merkle proof against the root it carries."""
        return verify_merkle_proof(proof)

    @staticmethod
    def verify_leaf_in_root(
        leaf: bytes,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """
        Verify a leaf is included in a Merkle root using raw components.

        Args:
            leaf: The leaf hash to verify
            siblings: Sibling hashes (bottom-up)
            root: The claimed Merkle root
        """
        return compute_proof_root(leaf, siblings) == root

    @staticmethod
    def verify_claim(
        address: str,
        amount: int,
        proof: Sequence[str],
        root: str,
        encoding: LeafEncoding = LeafEncoding.PACKED,
    ) -> bool:
        """
        Verify an (address, amount) claim from its published hex proof.

        The leaf is re-encoded from the claim data so a proof cannot be
        replayed for a different amount or recipient.

        Args:
            address: Claimant address (any valid casing)
            amount: Amount in smallest units
            proof: 0x-prefixed sibling hashes, in proof order
            root: 0x-prefixed Merkle root
            encoding: Leaf byte layout

        Returns:
            True if the recombined root equals ``root``; False for any
            mismatch or malformed hex input
        """
        try:
            siblings = [from_hex32(h) for h in proof]
            expected_root = from_hex32(root)
        except ValueError:
            return False
        leaf = hash_leaf(address, amount, encoding)
        return MerkleVerifier.verify_leaf_in_root(leaf, siblings, expected_root)


def verify_proof(leaf: str, proof: Sequence[str], root: str) -> bool:
    """Verify a 0x-hex leaf against a 0x-hex root with its published proof."""
    try:
        leaf_bytes = from_hex32(leaf)
        siblings = [from_hex32(h) for h in proof]
        expected_root = from_hex32(root)
    except ValueError:
        return False
    return MerkleVerifier.verify_leaf_in_root(leaf_bytes, siblings, expected_root)


def verify_claim(
    address: str,
    amount: int,
    proof: Sequence[str],
    root: str,
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> bool:
    return MerkleVerifier.verify_claim(address, amount, proof, root, encoding)


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
    "verify_proof",
    "verify_claim",
]
