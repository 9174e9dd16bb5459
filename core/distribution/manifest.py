"""
Module 04 - Distribution Manifest Model

Defines the immutable output artifact consumed by deployment tooling
(root, total allocation, claim count) and by claim frontends
(per-address amount and proof).

Serialization notes:
- Hashes are lowercase 0x-prefixed hex
- uint256 amounts serialize to JSON as decimal strings so JavaScript
  consumers never round them through a float; they load back from
  either strings or integers
"""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from core.merkle.leaves import LeafEncoding
from core.merkle.merkle_tree import OddNodePolicy
from core.schemas.claims import MAX_UINT256
from core.schemas.versioning import SCHEMA_VERSION


# Regex pattern for validating hex strings (0x followed by 64 hex chars = 32 bytes)
HEX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def validate_hex_hash(value: str, field_name: str) -> str:
    """Validate that a value is a valid 32-byte hex hash with 0x prefix."""
    if not isinstance(value, str) or not HEX_HASH_PATTERN.match(value):
        shown = value[:20] + "..." if isinstance(value, str) and len(value) > 20 else value
        raise ValueError(
            f"{field_name} must be a valid 32-byte hex string with 0x prefix "
            f"(64 hex chars), got: {shown}"
        )
    return value.lower()


def _parse_uint(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValueError(f"expected a non-negative integer string, got: {value!r}")
        return int(value)
    return value


def _check_uint256(value: int) -> int:
    if not 0 <= value <= MAX_UINT256:
        raise ValueError(f"value out of uint256 range: {value}")
    return value


# uint256 that round-trips through JSON as a decimal string
Uint256 = Annotated[
    int,
    BeforeValidator(_parse_uint),
    AfterValidator(_check_uint256),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]


class TokenInfo(BaseModel):
    """The token being distributed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    symbol: str = Field(default="USDC", min_length=1)
    decimals: int = Field(default=6, ge=0)


class ProofRecord(BaseModel):
    """
    Per-address claim record.

    This is everything a claimant needs to call the verifier contract.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    amount: Uint256 = Field(
        ...,
        description="Allocation in the token's smallest unit",
    )
    display_amount: str = Field(
        default="",
        description="Allocation in human-readable token units",
    )
    leaf_index: int = Field(
        ...,
        description="Position of the claim in the canonical claim ordering",
        ge=0,
    )
    leaf: str = Field(
        ...,
        description="Double-hashed leaf (0x-prefixed, 32 bytes)",
    )
    proof: tuple[str, ...] = Field(
        default=(),
        description="Sibling hashes from leaf level to root (0x-prefixed)",
    )

    @field_validator("leaf")
    @classmethod
    def _validate_leaf(cls, v: str) -> str:
        return validate_hex_hash(v, "leaf")

    @field_validator("proof")
    @classmethod
    def _validate_proof(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(validate_hex_hash(h, "proof element") for h in v)


class DistributionManifest(BaseModel):
    """
    Distribution Manifest.

    Built once after the tree is finalized; immutable afterwards. The
    ``proofs`` mapping is keyed by checksummed address and kept in leaf
    order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: str = Field(default=SCHEMA_VERSION)

    merkle_root: str = Field(
        ...,
        description="Merkle root (0x-prefixed, 32 bytes)",
    )
    total_allocation: Uint256 = Field(
        ...,
        description="Sum of all claim amounts in smallest units",
    )
    claim_count: int = Field(..., ge=1)
    tree_depth: int = Field(
        ...,
        description="Levels above the leaves; the longest possible proof",
        ge=0,
    )
    token: TokenInfo = Field(default_factory=TokenInfo)
    leaf_encoding: LeafEncoding = Field(default=LeafEncoding.PACKED)
    odd_node_policy: OddNodePolicy = Field(default=OddNodePolicy.CARRY)
    proofs: dict[str, ProofRecord] = Field(
        ...,
        description="Checksummed address -> claim record",
    )

    @field_validator("merkle_root")
    @classmethod
    def _validate_root(cls, v: str) -> str:
        return validate_hex_hash(v, "merkle_root")

    def lookup(self, address: str) -> tuple[str, ProofRecord] | None:
        """
        Find a claim by address, ignoring case.

        Returns:
            (address as stored, record), or None if there is no claim
        """
        record = self.proofs.get(address)
        if record is not None:
            return address, record
        key = address.lower()
        for candidate, value in self.proofs.items():
            if candidate.lower() == key:
                return candidate, value
        return None

    def deployment_parameters(self) -> dict[str, Any]:
        """The three values the deployment collaborator needs."""
        return {
            "merkle_root": self.merkle_root,
            "total_allocation": str(self.total_allocation),
            "claim_count": self.claim_count,
        }


__all__ = [
    "HEX_HASH_PATTERN",
    "validate_hex_hash",
    "Uint256",
    "TokenInfo",
    "ProofRecord",
    "DistributionManifest",
]
