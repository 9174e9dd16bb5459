"""
Test fixtures package for merkledrop tests.

This package provides factory functions for creating test objects:
- claims.py: addresses, raw records, CSV files, claim sets, trees and manifests

Usage:
    from fixtures.claims import make_claim_set, make_manifest

    def test_something():
        manifest = make_manifest(5)
"""

from .claims import (
    ADDRESS_A,
    ADDRESS_B,
    CHECKSUM_ADDRESSES,
    make_address,
    make_claim,
    make_claim_set,
    make_manifest,
    make_records,
    make_rows,
    make_tree,
    write_csv,
)

__all__ = [
    "ADDRESS_A",
    "ADDRESS_B",
    "CHECKSUM_ADDRESSES",
    "make_address",
    "make_claim",
    "make_claim_set",
    "make_manifest",
    "make_records",
    "make_rows",
    "make_tree",
    "write_csv",
]
