"""
Module 04 - Distribution Manifest
The root, totals and per-address proofs handed to deployment tooling
and claim frontends.

Owner: Protocol/Crypto Engineer
Module ID: M04

Usage:
    from core.distribution import emit_manifest, TokenInfo

    manifest = emit_manifest(claim_set, tree, TokenInfo(symbol="USDC", decimals=6))
    manifest.deployment_parameters()
"""
from .manifest import (
    HEX_HASH_PATTERN,
    validate_hex_hash,
    Uint256,
    TokenInfo,
    ProofRecord,
    DistributionManifest,
)

from .emitter import (
    build_manifest,
    verify_manifest,
    ensure_consistent,
    emit_manifest,
)


__all__ = [
    # Models
    "HEX_HASH_PATTERN",
    "validate_hex_hash",
    "Uint256",
    "TokenInfo",
    "ProofRecord",
    "DistributionManifest",
    # Emitter
    "build_manifest",
    "verify_manifest",
    "ensure_consistent",
    "emit_manifest",
]
