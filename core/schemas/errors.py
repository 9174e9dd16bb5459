"""
Module 01 - Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for the merkledrop pipeline.
Defines both Pydantic models for structured error reporting
and Python exceptions for control flow.

Soft errors (a single input row is rejected, the batch continues):
- MalformedRecordException
- InvalidAddressException
- InvalidAmountException
- DuplicateAddressException

Fatal errors (the run aborts and no output is written):
- NoValidClaimsException
- ManifestInconsistencyException
- MalformedInputException
- AllocationOverflowException
- ConfigurationException
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the pipeline."""

    # Row-level ingestion errors (soft)
    MALFORMED_RECORD = "MALFORMED_RECORD"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    DUPLICATE_ADDRESS = "DUPLICATE_ADDRESS"

    # Batch-level errors (fatal)
    NO_VALID_CLAIMS = "NO_VALID_CLAIMS"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    ALLOCATION_OVERFLOW = "ALLOCATION_OVERFLOW"

    # Merkle & Commitment Errors
    MANIFEST_INCONSISTENCY = "MANIFEST_INCONSISTENCY"
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    LEAF_HASH_MISMATCH = "LEAF_HASH_MISMATCH"

    # Serialization & configuration
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class MerkleDropError(BaseModel):
    """
    Base error model for structured error reporting.

    Used where errors are collected rather than raised, e.g. the
    per-row rejections accumulated by claim ingestion.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INVALID_ADDRESS],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )


class RowRejection(MerkleDropError):
    """A single input row that was skipped during ingestion."""

    row_number: int = Field(
        ...,
        description="1-based data row number in the input",
        ge=0,
    )
    raw_value: str | None = Field(
        default=None,
        description="The offending raw field value, if any",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class MerkleDropException(Exception):
    """
    Base exception for all merkledrop errors.

    Carries a stable error code and structured details.
    """

    def __init__(
        self,
        message: str,
        code: str = "MERKLEDROP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class RecordRejectedException(MerkleDropException):
    """Base class for row-level rejections. Never aborts a batch."""

    def __init__(
        self,
        message: str,
        code: str,
        raw_value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if raw_value is not None:
            full_details["raw_value"] = raw_value
        super().__init__(message=message, code=code, details=full_details)
        self.raw_value = raw_value

    def to_rejection(self, row_number: int) -> RowRejection:
        """Build the report entry for this rejection."""
        return RowRejection(
            code=self.code,
            message=self.message,
            details=self.details,
            row_number=row_number,
            raw_value=self.raw_value,
        )


class MalformedRecordException(RecordRejectedException):
    """Raised when a record lacks a required field."""

    def __init__(self, message: str, raw_value: str | None = None) -> None:
        super().__init__(message, ErrorCodes.MALFORMED_RECORD, raw_value)


class InvalidAddressException(RecordRejectedException):
    """Raised when an address fails format or checksum validation."""

    def __init__(self, message: str, raw_value: str | None = None) -> None:
        super().__init__(message, ErrorCodes.INVALID_ADDRESS, raw_value)


class InvalidAmountException(RecordRejectedException):
    """Raised when an amount is non-numeric, non-positive or out of range."""

    def __init__(self, message: str, raw_value: str | None = None) -> None:
        super().__init__(message, ErrorCodes.INVALID_AMOUNT, raw_value)


class DuplicateAddressException(RecordRejectedException):
    """Raised when a canonical address was already accepted."""

    def __init__(
        self,
        message: str,
        raw_value: str | None = None,
        first_row: int | None = None,
    ) -> None:
        details = {"first_row": first_row} if first_row is not None else None
        super().__init__(message, ErrorCodes.DUPLICATE_ADDRESS, raw_value, details)


class NoValidClaimsException(MerkleDropException):
    """Raised when ingestion accepted zero claims."""

    def __init__(
        self,
        message: str = "No valid claims to build a tree from",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NO_VALID_CLAIMS,
            details=details,
        )


class MalformedInputException(MerkleDropException):
    """Raised when the input as a whole cannot be interpreted."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.MALFORMED_INPUT,
            details=details,
        )


class AllocationOverflowException(MerkleDropException):
    """Raised when the summed allocation does not fit in a uint256."""

    def __init__(self, total: int, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["total_allocation"] = str(total)
        super().__init__(
            message=f"Total allocation exceeds uint256: {total}",
            code=ErrorCodes.ALLOCATION_OVERFLOW,
            details=full_details,
        )


class ManifestInconsistencyException(MerkleDropException):
    """
    Raised when a generated proof fails to verify against its own root.

    Indicates a construction bug. Never catch silently.
    """

    def __init__(
        self,
        message: str,
        address: str | None = None,
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if address:
            full_details["address"] = address
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.MANIFEST_INCONSISTENCY,
            details=full_details,
        )


class CanonicalizationException(MerkleDropException):
    """Raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
        )


class ConfigurationException(MerkleDropException):
    """Raised when configuration values are invalid."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.CONFIGURATION_ERROR,
            details=full_details,
        )
