"""
Module 08 - CLI Verify Command

Verify a distribution offline:
- Verify file hashes against artifact-index.json
- Re-encode every leaf and recompute every proof against the root
- Check the proof and deployment files agree with the manifest

Usage:
    merkledrop verify ./merkle-output [--json] [--debug]
    merkledrop verify ./merkle-output/distribution-manifest.json
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from core.schemas.verification import VerificationResult
from orchestrator.artifacts.io import ArtifactIOError, load_manifest, verify_output_dir


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of distribution verification for CLI output."""
    path: str = ""
    merkle_root: str = ""
    claim_count: int = 0
    ok: bool = False
    finding: dict[str, Any] | None = None
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["finding"] is None:
            del d["finding"]
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def build_summary(path: str, result: VerificationResult, debug: bool = False) -> VerifySummary:
    """Build a VerifySummary from a verification result."""
    summary = VerifySummary(
        path=path,
        ok=result.ok,
        errors=result.get_error_messages(),
    )
    if result.finding is not None:
        summary.finding = result.finding.model_dump(exclude_none=True)

    try:
        manifest = load_manifest(path)
        summary.merkle_root = manifest.merkle_root
        summary.claim_count = manifest.claim_count
    except ArtifactIOError:
        pass

    if debug:
        summary.checks = [
            {"check_id": c.check_id, "ok": c.ok, "message": c.message}
            for c in result.checks
        ]
    return summary


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"path: {summary.path}")
    print(f"merkle_root: {summary.merkle_root}")
    print(f"claims: {summary.claim_count}")
    print(f"ok: {str(summary.ok).lower()}")

    if summary.finding:
        where = summary.finding.get("path") or summary.finding.get("address") or ""
        print(f"finding: {summary.finding['kind']} {where} {summary.finding.get('reason', '')}".rstrip())

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    if summary.checks:
        passed = sum(1 for c in summary.checks if c["ok"])
        failed = len(summary.checks) - passed
        print(f"\nchecks: {passed} passed, {failed} failed")
        for check in summary.checks[:20]:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}")


def print_summary_json(summary: VerifySummary) -> None:
    """Print summary as JSON."""
    print(json.dumps(summary.to_dict(), indent=2))


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code (2 if any check failed)
    """
    path = Path(args.path)
    if not path.exists():
        print(f"Error: Not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Verifying distribution: {path}")
    result = verify_output_dir(path)
    summary = build_summary(str(path), result, debug=args.debug)

    if args.json:
        print_summary_json(summary)
    else:
        print_summary_human(summary)

    if summary.ok:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed")
    return EXIT_VERIFICATION_FAILED
