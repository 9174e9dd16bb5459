"""
Module 03 - Claim Ingestion
File: addresses.py

Purpose: Validate and canonicalize account addresses.

Rules:
- Surrounding whitespace is ignored; an empty field is a malformed record
- Address text must be 0x followed by exactly 40 hex digits
- Mixed-case text must carry a valid EIP-55 checksum; all-lowercase or
  all-uppercase text carries no checksum and is accepted as-is
- The canonical form is the EIP-55 checksummed address, so case variants
  of the same account collapse to a single identity
"""
from __future__ import annotations

from eth_utils import is_checksum_address, is_checksum_formatted_address, to_checksum_address

from core.schemas.claims import ADDRESS_PATTERN
from core.schemas.errors import InvalidAddressException, MalformedRecordException


def canonicalize_address(text: str | None) -> str:
    """
    Validate address text and return its checksummed form.

    Raises:
        MalformedRecordException: If the field is missing or blank
        InvalidAddressException: If the format or checksum is invalid

    Example:
        >>> canonicalize_address("  0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed ")
        '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'
    """
    if text is None:
        raise MalformedRecordException("Missing address field")

    candidate = text.strip()
    if not candidate:
        raise MalformedRecordException("Missing address", raw_value=text)

    if not ADDRESS_PATTERN.match(candidate):
        raise InvalidAddressException(f"Invalid address: {candidate}", raw_value=candidate)

    if is_checksum_formatted_address(candidate) and not is_checksum_address(candidate):
        raise InvalidAddressException(
            f"Invalid address checksum: {candidate}",
            raw_value=candidate,
        )

    return to_checksum_address(candidate)


def is_valid_address(text: str | None) -> bool:
    """Check whether address text would be accepted, without raising."""
    try:
        canonicalize_address(text)
    except (MalformedRecordException, InvalidAddressException):
        return False
    return True


def address_key(address: str) -> str:
    """Deduplication key for an already-validated address."""
    return address.lower()
