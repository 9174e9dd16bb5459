"""
Module 08 - CLI Build Command

Ingest a claims CSV, build the Merkle tree, verify every proof and write
the output directory.

Usage:
    merkledrop build rewards.csv --out ./merkle-output
    merkledrop build rewards.csv --leaf-encoding abi --odd-nodes duplicate
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from core.config.runtime import RuntimeConfig
from core.schemas.errors import MerkleDropException
from orchestrator.artifacts.io import write_distribution
from orchestrator.pipeline import RunResult, create_pipeline


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class BuildSummary:
    """Summary of a build for CLI output."""
    input_path: str = ""
    merkle_root: str = ""
    total_allocation: str = ""
    claim_count: int = 0
    tree_depth: int = 0
    total_rows: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    statistics: dict[str, Any] = field(default_factory=dict)
    saved_to: str | None = None
    ok: bool = True
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["saved_to"]:
            del d["saved_to"]
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def build_summary(
    input_path: str,
    result: RunResult,
    saved_to: Path | None = None,
    debug: bool = False,
) -> BuildSummary:
    """Build a BuildSummary from a pipeline result."""
    manifest = result.manifest
    summary = BuildSummary(
        input_path=input_path,
        merkle_root=manifest.merkle_root if manifest else "",
        total_allocation=str(manifest.total_allocation) if manifest else "",
        claim_count=result.claim_count,
        tree_depth=manifest.tree_depth if manifest else 0,
        total_rows=result.report.total_rows if result.report else 0,
        skipped=dict(sorted(result.report.skipped.items())) if result.report else {},
        statistics=result.statistics.to_dict() if result.statistics else {},
        saved_to=str(saved_to) if saved_to else None,
        ok=result.ok,
        errors=list(result.errors),
    )
    if debug:
        summary.checks = [
            {"check_id": c.check_id, "ok": c.ok, "message": c.message}
            for c in result.checks
        ]
    return summary


def print_summary_human(summary: BuildSummary, symbol: str = "") -> None:
    """Print summary in human-readable format."""
    print(f"input: {summary.input_path}")
    print(f"rows: {summary.total_rows}")
    print(f"claims: {summary.claim_count}")
    if summary.skipped:
        skipped = ", ".join(f"{code}={count}" for code, count in summary.skipped.items())
        print(f"skipped: {skipped}")
    print(f"merkle_root: {summary.merkle_root}")
    print(f"total_allocation: {summary.total_allocation}")
    print(f"tree_depth: {summary.tree_depth}")
    if summary.statistics:
        stats = summary.statistics
        unit = f" {symbol}" if symbol else ""
        print(f"total: {stats['total']}{unit}")
        print(f"average: {stats['average']}{unit}  median: {stats['median']}{unit}")
        print(f"min: {stats['min']}{unit}  max: {stats['max']}{unit}")
    if summary.saved_to:
        print(f"saved: {summary.saved_to}")
    print(f"ok: {str(summary.ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:5]:
            print(f"  - {err}")

    if summary.checks:
        passed = sum(1 for c in summary.checks if c["ok"])
        failed = len(summary.checks) - passed
        print(f"\nchecks: {passed} passed, {failed} failed")
        for check in summary.checks[:10]:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}: {check['message']}")


def print_summary_json(summary: BuildSummary) -> None:
    """Print summary as JSON."""
    print(json.dumps(summary.to_dict(), indent=2))


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Returns:
        Exit code
    """
    config: RuntimeConfig = getattr(args, "runtime_config", None) or RuntimeConfig()
    input_path = Path(args.csv)
    out_dir = Path(args.out or config.output.out_dir)
    debug = args.debug

    if not input_path.exists():
        print(f"Error: CSV file not found: {input_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    pipeline = create_pipeline(
        config,
        decimals=args.decimals,
        leaf_encoding=args.leaf_encoding,
        odd_node_policy=args.odd_nodes,
        strict_precision=True if args.strict_precision else None,
    )

    try:
        result = pipeline.run_csv(input_path)
    except MerkleDropException as e:
        if debug:
            raise
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if not result.ok:
        summary = build_summary(str(input_path), result, debug=debug)
        if args.json:
            print_summary_json(summary)
        else:
            print_summary_human(summary)
        logger.error("Build produced an inconsistent manifest; nothing written")
        return EXIT_VERIFICATION_FAILED

    saved_to = write_distribution(
        result.manifest,
        out_dir,
        token_addresses=pipeline.config.token_addresses,
        statistics=result.statistics,
    )

    summary = build_summary(str(input_path), result, saved_to=saved_to, debug=debug)
    if args.json:
        print_summary_json(summary)
    else:
        print_summary_human(summary, pipeline.config.token_symbol)

    logger.info(f"Distribution written to {saved_to}")
    return EXIT_SUCCESS
