"""
Module 01 - Schemas & Canonicalization
File: verification.py

Purpose: Standard result format for verification steps.
Used by the manifest consistency check and by offline verification
of an output directory.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import MerkleDropError


# Severity levels for checks
CheckSeverity = Literal["info", "warn", "error"]

# What a failed verification points at
FindingKind = Literal["claim_leaf", "merkle_root", "totals", "artifact_file"]


class CheckResult(BaseModel):
    """
    Result of a single verification check.

    Checks are atomic verification steps that can pass or fail.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(
        ...,
        description="Unique identifier for this check",
        min_length=1,
    )
    ok: bool = Field(
        ...,
        description="Whether the check passed",
    )
    severity: CheckSeverity = Field(
        ...,
        description="Severity level of this check",
    )
    message: str = Field(
        ...,
        description="Human-readable message describing the result",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional details about the check",
    )

    @property
    def is_error(self) -> bool:
        """Check if this is an error-level failure."""
        return not self.ok and self.severity == "error"

    @property
    def is_warning(self) -> bool:
        """Check if this is a warning."""
        return self.severity == "warn"

    @classmethod
    def passed(
        cls,
        check_id: str,
        message: str = "Check passed",
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a passed check result."""
        return cls(
            check_id=check_id,
            ok=True,
            severity="info",
            message=message,
            details=details or {},
        )

    @classmethod
    def warning(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a warning check result."""
        return cls(
            check_id=check_id,
            ok=True,  # Warnings don't fail the check
            severity="warn",
            message=message,
            details=details or {},
        )

    @classmethod
    def failed(
        cls,
        check_id: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> "CheckResult":
        """Create a failed check result."""
        return cls(
            check_id=check_id,
            ok=False,
            severity="error",
            message=message,
            details=details or {},
        )


class Finding(BaseModel):
    """Points at the first artifact that failed verification."""

    model_config = ConfigDict(extra="forbid")

    kind: FindingKind
    leaf_index: int | None = None
    address: str | None = None
    path: str | None = None
    reason: str | None = None


class VerificationResult(BaseModel):
    """
    Complete result of a verification process.

    Communicates verification outcomes without using exceptions; callers
    that must fail closed convert a failed result into an exception.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool = Field(
        ...,
        description="Overall verification success",
    )
    checks: list[CheckResult] = Field(
        default_factory=list,
        description="Individual check results",
    )
    finding: Finding | None = Field(
        default=None,
        description="First failing artifact, if verification failed",
    )
    error: MerkleDropError | None = Field(
        default=None,
        description="Error details if verification encountered an exception",
    )

    @property
    def has_errors(self) -> bool:
        return any(check.is_error for check in self.checks)

    @property
    def error_count(self) -> int:
        return sum(1 for check in self.checks if check.is_error)

    @property
    def passed_count(self) -> int:
        return sum(1 for check in self.checks if check.ok)

    def get_failed_checks(self) -> list[CheckResult]:
        return [check for check in self.checks if not check.ok]

    def get_error_messages(self) -> list[str]:
        return [check.message for check in self.checks if check.is_error]

    @classmethod
    def success(cls, checks: list[CheckResult] | None = None) -> "VerificationResult":
        """Create a successful verification result."""
        return cls(ok=True, checks=checks or [])

    @classmethod
    def failure(
        cls,
        checks: list[CheckResult],
        finding: Finding | None = None,
        error: MerkleDropError | None = None,
    ) -> "VerificationResult":
        """Create a failed verification result."""
        return cls(ok=False, checks=checks, finding=finding, error=error)

    def add_check(self, check: CheckResult) -> None:
        """Add a check result, downgrading ok on failure."""
        self.checks.append(check)
        if not check.ok:
            self.ok = False

    def merge(self, other: "VerificationResult") -> "VerificationResult":
        """Merge another verification result into this one."""
        return VerificationResult(
            ok=self.ok and other.ok,
            checks=self.checks + other.checks,
            finding=self.finding or other.finding,
            error=self.error or other.error,
        )
