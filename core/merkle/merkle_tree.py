"""
Module 02 - Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- Level-by-level tree construction from ordered leaf hashes
- Merkle proof generation for any leaf index
- Merkle proof verification
- Configurable handling of an unmatched node at odd-sized levels

Canonical Commitment Rules (Hard Contracts):
1. Leaves are produced by core.merkle.leaves (double-hashed claim encoding)
2. Parent hashing: parent = keccak256(min(a, b) || max(a, b))  (sorted pair)
3. Odd node rule (default CARRY): the unmatched last node of a level is
   promoted unchanged to the next level; no sibling is recorded for it.
   DUPLICATE pairs it with itself instead and records itself as sibling.
4. Empty leaves: rejected; there is no tree of zero claims
5. Single leaf: root = leaf, empty proof

Determinism Notes:
- No randomness or non-deterministic ordering
- Leaf ordering is defined upstream by the claim set
- This module never sorts leaves - only the two members of a pair
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from core.crypto.hashing import hash_sorted_pair


logger = logging.getLogger(__name__)


class OddNodePolicy(str, Enum):
    """What to do with the unmatched last node of an odd-sized level."""
    CARRY = "carry"  # promote unchanged, no sibling
    DUPLICATE = "duplicate"  # pair with itself


@dataclass(frozen=True)
class TreeNode:
    """A node of the tree. Level 0 holds the leaves."""
    hash: bytes
    level: int


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle proof for a single leaf in a Merkle tree.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based index of the leaf in the original leaf list
        siblings: Sibling hashes from the leaf level up to the root
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    siblings: tuple[bytes, ...]
    root: bytes

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")
        if not isinstance(self.siblings, tuple):
            object.__setattr__(self, "siblings", tuple(self.siblings))


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    Uses the sorted-pair rule, so merkle_parent(a, b) == merkle_parent(b, a).
    """
    return hash_sorted_pair(left, right)


def build_levels(
    leaves: Sequence[bytes],
    odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
) -> tuple[tuple[bytes, ...], ...]:
    """
    Build every level of the tree from the leaf level up to the root.

    Algorithm:
    1. Level 0 is the leaf sequence, in order
    2. Pair consecutive nodes left to right and hash each pair (sorted)
    3. If a level has an odd count, the last node is carried forward
       unchanged (CARRY) or hashed with itself (DUPLICATE)
    4. Repeat until one node remains

    Example (CARRY): [a, b, c] -> [parent(a,b), c] -> [parent(parent(a,b), c)]

    Returns:
        Tuple of levels; levels[0] are the leaves, levels[-1] == (root,)

    Raises:
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot build a Merkle tree from an empty leaf list")

    policy = OddNodePolicy(odd_nodes)
    current_level: tuple[bytes, ...] = tuple(leaves)
    levels: list[tuple[bytes, ...]] = [current_level]

    while len(current_level) > 1:
        next_level: list[bytes] = [
            merkle_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level) - 1, 2)
        ]

        if len(current_level) % 2 == 1:
            last = current_level[-1]
            if policy is OddNodePolicy.DUPLICATE:
                next_level.append(merkle_parent(last, last))
            else:
                next_level.append(last)

        current_level = tuple(next_level)
        levels.append(current_level)

    return tuple(levels)


def proof_siblings(
    levels: Sequence[Sequence[bytes]],
    index: int,
    odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
) -> list[bytes]:
    """
    Collect sibling hashes for the leaf at ``index`` from built levels.

    At each level below the root the sibling is the other member of the
    node's pair (index XOR 1). A node carried forward unpaired has no
    sibling at that level and contributes nothing to the proof.
    """
    policy = OddNodePolicy(odd_nodes)
    siblings: list[bytes] = []
    current_index = index

    for level in levels[:-1]:
        sibling_index = current_index ^ 1
        if sibling_index < len(level):
            siblings.append(level[sibling_index])
        elif policy is OddNodePolicy.DUPLICATE:
            siblings.append(level[current_index])
        current_index //= 2

    return siblings


class MerkleTree:
    """
    Read-only Merkle tree over an ordered leaf sequence.

    Built once; every level is retained so proofs are read directly
    from the stored nodes.

    Example:
        >>> tree = MerkleTree.from_leaves([leaf_a, leaf_b, leaf_c])
        >>> proof = tree.proof(2)
        >>> verify_merkle_proof(proof)
        True
    """

    def __init__(
        self,
        levels: Sequence[Sequence[bytes]],
        odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
    ) -> None:
        if not levels or len(levels[-1]) != 1:
            raise ValueError("Top level must contain exactly one node")
        self._levels = tuple(tuple(level) for level in levels)
        self._odd_nodes = OddNodePolicy(odd_nodes)

    @classmethod
    def from_leaves(
        cls,
        leaves: Sequence[bytes],
        odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
    ) -> "MerkleTree":
        """Build a tree from ordered leaf hashes."""
        tree = cls(build_levels(leaves, odd_nodes), odd_nodes)
        logger.debug(
            f"Built Merkle tree: {tree.leaf_count} leaves, depth {tree.depth}, "
            f"odd_nodes={tree.odd_nodes.value}"
        )
        return tree

    @property
    def root(self) -> bytes:
        return self._levels[-1][0]

    @property
    def levels(self) -> tuple[tuple[bytes, ...], ...]:
        return self._levels

    @property
    def leaves(self) -> tuple[bytes, ...]:
        return self._levels[0]

    @property
    def leaf_count(self) -> int:
        return len(self._levels[0])

    @property
    def depth(self) -> int:
        """Number of levels above the leaves (the longest possible proof)."""
        return len(self._levels) - 1

    @property
    def odd_nodes(self) -> OddNodePolicy:
        return self._odd_nodes

    def nodes(self, level: int) -> tuple[TreeNode, ...]:
        """All nodes at a given level."""
        return tuple(TreeNode(hash=h, level=level) for h in self._levels[level])

    def proof(self, index: int) -> MerkleProof:
        """
        Generate the inclusion proof for the leaf at ``index``.

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= self.leaf_count:
            raise IndexError(
                f"Leaf index {index} out of range for {self.leaf_count} leaves"
            )
        return MerkleProof(
            leaf=self.leaves[index],
            index=index,
            siblings=tuple(proof_siblings(self._levels, index, self._odd_nodes)),
            root=self.root,
        )

    def proofs(self) -> list[MerkleProof]:
        """Proofs for every leaf, in leaf order."""
        return [self.proof(i) for i in range(self.leaf_count)]


def build_merkle_root(
    leaves: Sequence[bytes],
    odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Raises:
        ValueError: If leaves is empty
    """
    return build_levels(leaves, odd_nodes)[-1][0]


def build_merkle_proof(
    leaves: Sequence[bytes],
    index: int,
    odd_nodes: OddNodePolicy = OddNodePolicy.CARRY,
) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")
    return MerkleTree.from_leaves(leaves, odd_nodes).proof(index)


def compute_proof_root(leaf: bytes, siblings: Sequence[bytes]) -> bytes:
    """
    Recombine a leaf with its siblings, in proof order.

    This is exactly what the on-chain verifier does: fold the sorted-pair
    hash over the sibling list starting from the leaf.
    """
    current_hash = leaf
    for sibling in siblings:
        current_hash = merkle_parent(current_hash, sibling)
    return current_hash


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """
    Verify a Merkle proof against the root it carries.

    Position information is not needed: the sorted-pair rule makes each
    step independent of left/right order.
    """
    return compute_proof_root(proof.leaf, proof.siblings) == proof.root


def compute_tree_depth(num_leaves: int) -> int:
    """
    Number of levels above the leaves for a tree of ``num_leaves``.

    Equal to ceil(log2(num_leaves)); the same under both odd-node policies.
    Returns 0 for a single leaf (and for an empty tree).
    """
    depth = 0
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1
    return depth


__all__ = [
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
]
