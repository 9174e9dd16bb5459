"""
Module 08 - CLI Proof Command

Print one claimant's amount and proof, re-verified against the root.

Usage:
    merkledrop proof ./merkle-output 0x742d35Cc6634C0532925a3b844Bc454e4438f44e [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace

from core.merkle.merkle_proofs import MerkleVerifier
from orchestrator.artifacts.io import ArtifactIOError, load_manifest


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def proof_cmd(args: Namespace) -> int:
    """Execute the proof command."""
    try:
        manifest = load_manifest(args.path)
    except ArtifactIOError as e:
        print(f"Error loading manifest: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    match = manifest.lookup(args.address.strip())
    if match is None:
        print(f"No claim for address: {args.address}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    address, record = match
    valid = MerkleVerifier.verify_claim(
        address,
        record.amount,
        record.proof,
        manifest.merkle_root,
        manifest.leaf_encoding,
    )

    if args.json:
        print(json.dumps({
            "address": address,
            "amount": str(record.amount),
            "display_amount": record.display_amount,
            "index": record.leaf_index,
            "leaf": record.leaf,
            "proof": list(record.proof),
            "merkle_root": manifest.merkle_root,
            "valid": valid,
        }, indent=2))
    else:
        print(f"address: {address}")
        print(f"amount: {record.amount} ({record.display_amount} {manifest.token.symbol})")
        print(f"index: {record.leaf_index}")
        print(f"leaf: {record.leaf}")
        print(f"proof ({len(record.proof)}):")
        for sibling in record.proof:
            print(f"  {sibling}")
        print(f"merkle_root: {manifest.merkle_root}")
        print(f"valid: {str(valid).lower()}")

    return EXIT_SUCCESS if valid else EXIT_VERIFICATION_FAILED
