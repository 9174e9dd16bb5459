"""
Module 02 - Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py and core/merkle/merkle_proofs.py

1. Root determinism - same leaves -> same root across runs
2. Odd levels - CARRY promotes the last node, DUPLICATE pairs it with itself
3. Proof verification - generate proof for each index, verify passes
4. Tamper detection - tampered sibling/leaf/root fails verification
5. Empty leaves - rejected
6. Single leaf - root equals leaf, empty proof
7. Known answers - all-zero subtrees match published roots
"""
import pytest

from core.crypto.hashing import keccak256, to_hex
from core.merkle.leaves import LeafEncoding, hash_leaf
from core.merkle.merkle_tree import (
    MerkleProof,
    MerkleTree,
    OddNodePolicy,
    build_levels,
    build_merkle_proof,
    build_merkle_root,
    compute_proof_root,
    compute_tree_depth,
    merkle_parent,
    verify_merkle_proof,
)
from core.merkle.merkle_proofs import MerkleProver, MerkleVerifier, verify_claim, verify_proof

from fixtures.claims import make_claim_set


def _leaves(n: int) -> list[bytes]:
    return [keccak256(f"leaf{i}".encode()) for i in range(n)]


# Roots of all-zero subtrees: Z(n+1) = keccak256(Z(n) || Z(n)), Z0 = 32 zero bytes
ZERO_SUBTREE_ROOTS = {
    2: "ad3228b676f7d3cd4284a5443f17f1962b36e491b30a40b2405849e597ba5fb5",
    4: "b4c11951957c6f8f642c4af61cd6b24640fec6dc7fc607ee8206a99e92410d30",
    8: "21ddb9a356815c3fac1026b6dec5df3124afbadb485c9ba5a3e3398a04b7ba85",
}


class TestKnownAnswers:
    """Roots checked against published zero-subtree hashes."""

    @pytest.mark.parametrize("policy", list(OddNodePolicy))
    @pytest.mark.parametrize("n", sorted(ZERO_SUBTREE_ROOTS))
    def test_zero_leaves(self, n, policy):
        tree = MerkleTree.from_leaves([bytes(32)] * n, odd_nodes=policy)
        assert tree.root.hex() == ZERO_SUBTREE_ROOTS[n]

    def test_three_zero_leaves_duplicate(self):
        """The duplicated third leaf completes the 4-leaf zero subtree."""
        root = build_merkle_root([bytes(32)] * 3, OddNodePolicy.DUPLICATE)
        assert root.hex() == ZERO_SUBTREE_ROOTS[4]

    def test_zero_leaf_proof(self):
        tree = MerkleTree.from_leaves([bytes(32)] * 4)
        proof = tree.proof(2)
        assert [s.hex() for s in proof.siblings] == ["00" * 32, ZERO_SUBTREE_ROOTS[2]]
        assert verify_merkle_proof(proof)


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_empty_leaves_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            build_merkle_root([])

    def test_build_proof_empty_raises(self):
        """Cannot generate proof for empty tree."""
        with pytest.raises(ValueError, match="empty"):
            build_merkle_proof([], 0)


class TestSingleLeaf:
    """Tests for single leaf tree behavior."""

    def test_single_leaf_root_equals_leaf(self):
        leaf = _leaves(1)[0]
        assert build_merkle_root([leaf]) == leaf

    def test_single_leaf_proof_no_siblings(self):
        leaf = _leaves(1)[0]
        proof = build_merkle_proof([leaf], 0)
        assert proof.siblings == ()
        assert proof.root == leaf
        assert verify_merkle_proof(proof)

    def test_single_claim_tree(self):
        """One claim: depth 0, root is the claim's leaf."""
        claims = make_claim_set(1)
        tree = MerkleProver.build_tree(claims)
        assert tree.depth == 0
        assert tree.root == hash_leaf(claims[0].address, claims[0].amount)


class TestTreeShape:
    """Level construction under both odd-node policies."""

    def test_two_leaves(self):
        a, b = _leaves(2)
        assert build_merkle_root([a, b]) == merkle_parent(a, b)

    def test_three_leaves_carry(self):
        """[a, b, c] -> [p(a,b), c] -> [p(p(a,b), c)]."""
        a, b, c = _leaves(3)
        levels = build_levels([a, b, c], OddNodePolicy.CARRY)
        assert levels[1] == (merkle_parent(a, b), c)
        assert levels[2] == (merkle_parent(merkle_parent(a, b), c),)

    def test_three_leaves_duplicate(self):
        """[a, b, c] -> [p(a,b), p(c,c)] -> root."""
        a, b, c = _leaves(3)
        levels = build_levels([a, b, c], OddNodePolicy.DUPLICATE)
        assert levels[1] == (merkle_parent(a, b), merkle_parent(c, c))

    def test_policies_differ_on_odd_sizes(self):
        leaves = _leaves(5)
        assert build_merkle_root(leaves, OddNodePolicy.CARRY) != build_merkle_root(
            leaves, OddNodePolicy.DUPLICATE
        )

    def test_policies_agree_on_powers_of_two(self):
        leaves = _leaves(8)
        assert build_merkle_root(leaves, OddNodePolicy.CARRY) == build_merkle_root(
            leaves, OddNodePolicy.DUPLICATE
        )

    def test_size_three_proof_lengths_carry(self):
        """The carried leaf has a shorter proof."""
        tree = MerkleTree.from_leaves(_leaves(3))
        assert [len(p.siblings) for p in tree.proofs()] == [2, 2, 1]

    def test_size_three_proof_lengths_duplicate(self):
        tree = MerkleTree.from_leaves(_leaves(3), OddNodePolicy.DUPLICATE)
        assert [len(p.siblings) for p in tree.proofs()] == [2, 2, 2]

    @pytest.mark.parametrize("n,depth", [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (1000, 10)])
    def test_depth(self, n, depth):
        """depth == ceil(log2 n)."""
        assert compute_tree_depth(n) == depth
        assert MerkleTree.from_leaves(_leaves(n)).depth == depth

    def test_no_proof_longer_than_depth(self):
        for n in (3, 5, 7, 13):
            for policy in OddNodePolicy:
                tree = MerkleTree.from_leaves(_leaves(n), policy)
                assert max(len(p.siblings) for p in tree.proofs()) <= tree.depth

    def test_top_level_must_be_single(self):
        with pytest.raises(ValueError):
            MerkleTree([_leaves(2)])


class TestRootDeterminism:
    """Tests for deterministic root computation."""

    def test_same_leaves_same_root(self):
        leaves = _leaves(7)
        assert build_merkle_root(leaves) == build_merkle_root(list(leaves))

    def test_same_claims_same_root(self):
        assert MerkleProver.compute_root(make_claim_set(11)) == MerkleProver.compute_root(
            make_claim_set(11)
        )

    def test_order_sensitive(self):
        """Moving a leaf to a different pair changes the root."""
        a, b, c, d = _leaves(4)
        assert build_merkle_root([a, b, c, d]) != build_merkle_root([a, c, b, d])

    def test_power_of_two_reversal_keeps_root(self):
        """With sorted pairs, reversing a power-of-two sequence keeps the root."""
        leaves = _leaves(8)
        assert build_merkle_root(leaves) == build_merkle_root(leaves[::-1])

    def test_swap_within_pair_keeps_root(self):
        a, b, c, d = _leaves(4)
        assert build_merkle_root([a, b, c, d]) == build_merkle_root([b, a, c, d])

    def test_reversal_changes_root_for_size_three(self):
        """Reordering is not root-preserving in general."""
        leaves = _leaves(3)
        assert build_merkle_root(leaves) != build_merkle_root(leaves[::-1])

    def test_encoding_changes_root(self):
        claims = make_claim_set(4)
        assert MerkleProver.compute_root(claims, LeafEncoding.PACKED) != MerkleProver.compute_root(
            claims, LeafEncoding.ABI
        )


class TestProofVerification:
    """Every generated proof recombines to the root."""

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6, 7, 16, 33])
    @pytest.mark.parametrize("policy", list(OddNodePolicy))
    def test_all_proofs_verify(self, n, policy):
        tree = MerkleTree.from_leaves(_leaves(n), policy)
        for i, proof in enumerate(tree.proofs()):
            assert proof.index == i
            assert proof.leaf == tree.leaves[i]
            assert verify_merkle_proof(proof)

    def test_index_out_of_range(self):
        tree = MerkleTree.from_leaves(_leaves(3))
        with pytest.raises(IndexError):
            tree.proof(3)
        with pytest.raises(IndexError):
            tree.proof(-1)

    def test_negative_proof_index_rejected(self):
        leaf = _leaves(1)[0]
        with pytest.raises(ValueError):
            MerkleProof(leaf=leaf, index=-1, siblings=(), root=leaf)

    def test_verify_claim_from_hex(self):
        claims = make_claim_set(5)
        tree = MerkleProver.build_tree(claims)
        proof = tree.proof(4)
        assert MerkleVerifier.verify_claim(
            claims[4].address,
            claims[4].amount,
            [to_hex(s) for s in proof.siblings],
            to_hex(tree.root),
        )

    def test_verify_claim_malformed_hex(self):
        claims = make_claim_set(2)
        assert not MerkleVerifier.verify_claim(claims[0].address, claims[0].amount, ["0x12"], "0x00")

    def test_module_level_helpers(self):
        """verify_proof and verify_claim take the hex values a manifest publishes."""
        claims = make_claim_set(3)
        tree = MerkleProver.build_tree(claims)
        proof = tree.proof(2)
        siblings = [to_hex(s) for s in proof.siblings]
        root = to_hex(tree.root)
        assert verify_proof(to_hex(proof.leaf), siblings, root)
        assert not verify_proof(to_hex(tree.leaves[0]), siblings, root)
        assert not verify_proof("0xzz", siblings, root)
        assert verify_claim(claims[2].address.lower(), claims[2].amount, siblings, root)


class TestTamperDetection:
    """Tampered proofs fail."""

    def test_tampered_sibling(self):
        proof = MerkleTree.from_leaves(_leaves(4)).proof(1)
        siblings = list(proof.siblings)
        siblings[0] = keccak256(b"evil")
        tampered = MerkleProof(leaf=proof.leaf, index=1, siblings=tuple(siblings), root=proof.root)
        assert not verify_merkle_proof(tampered)

    def test_tampered_leaf(self):
        proof = MerkleTree.from_leaves(_leaves(4)).proof(2)
        tampered = MerkleProof(leaf=keccak256(b"evil"), index=2, siblings=proof.siblings, root=proof.root)
        assert not verify_merkle_proof(tampered)

    def test_tampered_root(self):
        proof = MerkleTree.from_leaves(_leaves(4)).proof(0)
        assert not MerkleVerifier.verify_leaf_in_root(proof.leaf, proof.siblings, keccak256(b"evil"))

    def test_amount_change_fails_claim_verification(self):
        """A proof cannot be replayed for a different amount."""
        claims = make_claim_set(3)
        tree = MerkleProver.build_tree(claims)
        siblings = [to_hex(s) for s in tree.proof(0).siblings]
        root = to_hex(tree.root)
        assert MerkleVerifier.verify_claim(claims[0].address, claims[0].amount, siblings, root)
        assert not MerkleVerifier.verify_claim(claims[0].address, claims[0].amount + 1, siblings, root)

    def test_compute_proof_root_order(self):
        """Folding is sorted-pair, so sibling side does not matter per step."""
        a, b = _leaves(2)
        assert compute_proof_root(a, [b]) == compute_proof_root(b, [a])
