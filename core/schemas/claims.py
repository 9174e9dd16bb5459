"""
Module 01 - Schemas & Canonicalization
File: claims.py

Purpose: Claim data model.

A Claim is one (recipient, amount) allocation after validation and
canonicalization. A ClaimSet is the immutable ordered sequence of claims
produced once by ingestion and consumed read-only by the tree builder.
Its order fixes leaf indices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Largest value representable as a uint256
MAX_UINT256 = 2**256 - 1

# 0x followed by 40 hex chars = 20 bytes
ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class Claim(BaseModel):
    """
    A single validated allocation.

    Attributes:
        address: Canonical (EIP-55 checksummed) account address
        amount: Amount in the token's smallest unit
        display_amount: Normalized human-readable decimal amount
        source_row: 1-based input row the claim came from
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str = Field(
        ...,
        description="EIP-55 checksummed 20-byte account address",
    )
    amount: int = Field(
        ...,
        description="Amount in the token's smallest unit",
    )
    display_amount: str = Field(
        default="",
        description="Human-readable decimal amount as accepted from input",
    )
    source_row: int = Field(
        default=0,
        description="1-based input row number",
        ge=0,
    )

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not ADDRESS_PATTERN.match(value):
            raise ValueError(f"address must be 0x-prefixed 20-byte hex, got: {value!r}")
        return value

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: int) -> int:
        if not 0 < value <= MAX_UINT256:
            raise ValueError(f"amount must be a positive uint256, got: {value}")
        return value


@dataclass(frozen=True)
class ClaimSet:
    """
    Immutable ordered claim sequence.

    Built once by ingestion; never mutated. Invariants:
    - at least one claim
    - no two claims share a canonical address
    """
    claims: tuple[Claim, ...]

    def __post_init__(self) -> None:
        """Validate set invariants."""
        if not isinstance(self.claims, tuple):
            object.__setattr__(self, "claims", tuple(self.claims))
        if not self.claims:
            raise ValueError("ClaimSet requires at least one claim")
        seen: set[str] = set()
        for claim in self.claims:
            key = claim.address.lower()
            if key in seen:
                raise ValueError(f"Duplicate address in claim set: {claim.address}")
            seen.add(key)

    def __len__(self) -> int:
        return len(self.claims)

    def __iter__(self) -> Iterator[Claim]:
        return iter(self.claims)

    def __getitem__(self, index: int) -> Claim:
        return self.claims[index]

    @property
    def total_allocation(self) -> int:
        """Sum of all claim amounts, exact integer arithmetic."""
        return sum(claim.amount for claim in self.claims)

    @property
    def addresses(self) -> tuple[str, ...]:
        return tuple(claim.address for claim in self.claims)

    def index_of(self, address: str) -> int:
        """
        Leaf index for an address (case-insensitive).

        Raises:
            KeyError: If the address is not in the set
        """
        key = address.lower()
        for i, claim in enumerate(self.claims):
            if claim.address.lower() == key:
                return i
        raise KeyError(address)
