"""
Module 02 - Merkle Tree and Commitments
Claim leaf encoding, deterministic Merkle tree construction and
proof generation/verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- LeafEncoding / encode_leaves: claim -> double-hashed leaf
- MerkleTree: level-by-level tree with per-leaf proofs
- verify_merkle_proof: Verify a proof against its claimed root
- MerkleProver / MerkleVerifier: claim-level convenience wrappers

Canonical Commitment Rules:
1. Leaf hashing: keccak256(keccak256(address || uint256 amount))
2. Parent hashing: keccak256(min(a, b) || max(a, b))
3. Odd levels: last node carried forward unchanged (default)
4. Empty tree: rejected
5. Single leaf: root = leaf

Usage:
    from core.merkle import MerkleProver, MerkleVerifier

    tree = MerkleProver.build_tree(claim_set)
    proof = tree.proof(2)
    assert MerkleVerifier.verify(proof)
"""
from .leaves import (
    LEAF_TYPES,
    LeafEncoding,
    Leaf,
    encode_claim,
    hash_leaf,
    claim_leaf_hash,
    encode_leaves,
)

from .merkle_tree import (
    OddNodePolicy,
    TreeNode,
    MerkleProof,
    MerkleTree,
    merkle_parent,
    build_levels,
    proof_siblings,
    build_merkle_root,
    build_merkle_proof,
    compute_proof_root,
    verify_merkle_proof,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    verify_proof,
    verify_claim,
)


__all__ = [
    # Leaves
    "LEAF_TYPES",
    "LeafEncoding",
    "Leaf",
    "encode_claim",
    "hash_leaf",
    "claim_leaf_hash",
    "encode_leaves",
    # Tree
    "OddNodePolicy",
    "TreeNode",
    "MerkleProof",
    "MerkleTree",
    "merkle_parent",
    "build_levels",
    "proof_siblings",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_proof_root",
    "verify_merkle_proof",
    "compute_tree_depth",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
    "verify_proof",
    "verify_claim",
]
