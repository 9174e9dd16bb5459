"""
Module 01 - Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Canonical serialization API
from .canonical import (
    canonicalize_value,
    dumps_pretty,
    format_decimal,
)

# Error models and exceptions
from .errors import (
    AllocationOverflowException,
    CanonicalizationException,
    ConfigurationException,
    DuplicateAddressException,
    ErrorCodes,
    InvalidAddressException,
    InvalidAmountException,
    MalformedInputException,
    MalformedRecordException,
    ManifestInconsistencyException,
    MerkleDropError,
    MerkleDropException,
    NoValidClaimsException,
    RecordRejectedException,
    RowRejection,
)

# Claims
from .claims import (
    ADDRESS_PATTERN,
    MAX_UINT256,
    Claim,
    ClaimSet,
)

# Verification results
from .verification import (
    CheckResult,
    CheckSeverity,
    Finding,
    FindingKind,
    VerificationResult,
)

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Canonical
    "canonicalize_value",
    "dumps_pretty",
    "format_decimal",
    # Errors
    "AllocationOverflowException",
    "CanonicalizationException",
    "ConfigurationException",
    "DuplicateAddressException",
    "ErrorCodes",
    "InvalidAddressException",
    "InvalidAmountException",
    "MalformedInputException",
    "MalformedRecordException",
    "ManifestInconsistencyException",
    "MerkleDropError",
    "MerkleDropException",
    "NoValidClaimsException",
    "RecordRejectedException",
    "RowRejection",
    # Claims
    "ADDRESS_PATTERN",
    "MAX_UINT256",
    "Claim",
    "ClaimSet",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "Finding",
    "FindingKind",
    "VerificationResult",
]
