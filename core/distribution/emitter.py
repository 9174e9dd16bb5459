"""
Module 04 - Manifest Emitter
Builds the distribution manifest from a finished tree and checks it
against itself before anything leaves the process.

Owner: Protocol/Crypto Engineer
Module ID: M04

Consistency rules checked by verify_manifest:
1. Every record's leaf re-encodes from its (address, amount)
2. Every proof recombines to the manifest root
3. Leaf indices cover 0..claim_count-1 exactly once
4. claim_count and total_allocation match the records
5. No proof is longer than tree_depth
"""
from __future__ import annotations

import logging

from core.crypto.hashing import from_hex32, to_hex
from core.merkle.leaves import LeafEncoding, hash_leaf
from core.merkle.merkle_tree import MerkleTree, compute_proof_root
from core.claims.amounts import check_total_allocation, from_smallest_unit
from core.schemas.canonical import format_decimal
from core.schemas.claims import ClaimSet
from core.schemas.errors import ErrorCodes, ManifestInconsistencyException
from core.schemas.verification import CheckResult, Finding, VerificationResult
from core.distribution.manifest import DistributionManifest, ProofRecord, TokenInfo


logger = logging.getLogger(__name__)


def build_manifest(
    claims: ClaimSet,
    tree: MerkleTree,
    token: TokenInfo | None = None,
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> DistributionManifest:
    """
    Assemble the manifest for a claim set and its tree.

    The tree must have been built from ``claims`` in order; leaf i is
    claim i.

    Raises:
        ValueError: If the tree and claim set sizes differ
        AllocationOverflowException: If the total does not fit in a uint256
    """
    if tree.leaf_count != len(claims):
        raise ValueError(
            f"Tree has {tree.leaf_count} leaves but claim set has {len(claims)} claims"
        )
    total = check_total_allocation(claims.total_allocation)
    token = token or TokenInfo()

    proofs: dict[str, ProofRecord] = {}
    for index, claim in enumerate(claims):
        proof = tree.proof(index)
        proofs[claim.address] = ProofRecord(
            amount=claim.amount,
            display_amount=claim.display_amount
            or format_decimal(from_smallest_unit(claim.amount, token.decimals)),
            leaf_index=index,
            leaf=to_hex(proof.leaf),
            proof=tuple(to_hex(s) for s in proof.siblings),
        )

    return DistributionManifest(
        merkle_root=to_hex(tree.root),
        total_allocation=total,
        claim_count=len(claims),
        tree_depth=tree.depth,
        token=token,
        leaf_encoding=LeafEncoding(encoding),
        odd_node_policy=tree.odd_nodes,
        proofs=proofs,
    )


def _check_records(manifest: DistributionManifest) -> tuple[list[CheckResult], Finding | None]:
    root = from_hex32(manifest.merkle_root)
    bad_leaves: list[int] = []
    bad_proofs: list[int] = []
    too_long: list[int] = []
    finding: Finding | None = None

    for address, record in manifest.proofs.items():
        try:
            leaf = hash_leaf(address, record.amount, manifest.leaf_encoding)
        except ValueError:
            leaf = None
        if leaf is None or to_hex(leaf) != record.leaf:
            bad_leaves.append(record.leaf_index)
            finding = finding or Finding(
                kind="claim_leaf",
                leaf_index=record.leaf_index,
                address=address,
                reason="leaf does not match encoded (address, amount)",
            )
            continue

        siblings = [from_hex32(h) for h in record.proof]
        if compute_proof_root(leaf, siblings) != root:
            bad_proofs.append(record.leaf_index)
            finding = finding or Finding(
                kind="claim_leaf",
                leaf_index=record.leaf_index,
                address=address,
                reason="proof does not recombine to merkle root",
            )

        if len(record.proof) > manifest.tree_depth:
            too_long.append(record.leaf_index)

    checks = []
    if bad_leaves:
        checks.append(CheckResult.failed(
            "leaf_encoding",
            f"{len(bad_leaves)} leaves do not match their claim data",
            {"leaf_indices": bad_leaves[:20], "code": ErrorCodes.LEAF_HASH_MISMATCH},
        ))
    else:
        checks.append(CheckResult.passed("leaf_encoding", "All leaves re-encode from claim data"))

    if bad_proofs:
        checks.append(CheckResult.failed(
            "proof_roots",
            f"{len(bad_proofs)} proofs do not verify against the root",
            {"leaf_indices": bad_proofs[:20], "code": ErrorCodes.MERKLE_PROOF_INVALID},
        ))
    else:
        checks.append(CheckResult.passed(
            "proof_roots",
            f"All {len(manifest.proofs) - len(bad_leaves)} proofs verify against the root",
        ))

    if too_long:
        checks.append(CheckResult.failed(
            "proof_lengths",
            f"{len(too_long)} proofs are longer than tree depth {manifest.tree_depth}",
            {"leaf_indices": too_long[:20]},
        ))
    else:
        checks.append(CheckResult.passed("proof_lengths"))

    return checks, finding


def _check_totals(manifest: DistributionManifest) -> tuple[list[CheckResult], Finding | None]:
    checks = []
    finding: Finding | None = None
    records = list(manifest.proofs.values())

    if len(records) != manifest.claim_count:
        checks.append(CheckResult.failed(
            "claim_count",
            f"claim_count {manifest.claim_count} but {len(records)} records",
        ))
        finding = Finding(kind="totals", reason="claim_count mismatch")
    else:
        checks.append(CheckResult.passed("claim_count", f"{len(records)} records"))

    total = sum(r.amount for r in records)
    if total != manifest.total_allocation:
        checks.append(CheckResult.failed(
            "total_allocation",
            f"total_allocation {manifest.total_allocation} but records sum to {total}",
        ))
        finding = finding or Finding(kind="totals", reason="total_allocation mismatch")
    else:
        checks.append(CheckResult.passed("total_allocation", f"Total {total}"))

    indices = sorted(r.leaf_index for r in records)
    if indices != list(range(len(records))):
        checks.append(CheckResult.failed(
            "leaf_indices",
            "Leaf indices are not a permutation of 0..claim_count-1",
        ))
        finding = finding or Finding(kind="totals", reason="leaf index coverage")
    else:
        checks.append(CheckResult.passed("leaf_indices"))

    return checks, finding


def verify_manifest(manifest: DistributionManifest) -> VerificationResult:
    """
    Re-verify every record of a manifest against its own root.

    Never raises for content problems; a failed check is reported in
    the result along with the first offending artifact.
    """
    record_checks, record_finding = _check_records(manifest)
    total_checks, total_finding = _check_totals(manifest)

    checks = total_checks + record_checks
    if all(c.ok for c in checks):
        return VerificationResult.success(checks)

    return VerificationResult.failure(checks, finding=record_finding or total_finding)


def ensure_consistent(manifest: DistributionManifest) -> None:
    """
    Fail closed on any self-inconsistency.

    Raises:
        ManifestInconsistencyException: If verify_manifest reports a failure
    """
    result = verify_manifest(manifest)
    if result.ok:
        return

    finding = result.finding
    messages = "; ".join(result.get_error_messages())
    logger.error(f"Manifest failed self-verification: {messages}")
    raise ManifestInconsistencyException(
        f"Manifest failed self-verification: {messages}",
        address=finding.address if finding else None,
        leaf_index=finding.leaf_index if finding else None,
    )


def emit_manifest(
    claims: ClaimSet,
    tree: MerkleTree,
    token: TokenInfo | None = None,
    encoding: LeafEncoding = LeafEncoding.PACKED,
) -> DistributionManifest:
    """
    Build the manifest and verify it before returning.

    Raises:
        ManifestInconsistencyException: If any proof fails to verify
    """
    manifest = build_manifest(claims, tree, token, encoding)
    ensure_consistent(manifest)
    logger.info(
        f"Emitted manifest: root {manifest.merkle_root}, "
        f"{manifest.claim_count} claims, depth {manifest.tree_depth}"
    )
    return manifest


__all__ = [
    "build_manifest",
    "verify_manifest",
    "ensure_consistent",
    "emit_manifest",
]
