"""
Module 08 - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m merkledrop_cli build <csv> [--out DIR] [--decimals N] [--json] [--debug]
    python -m merkledrop_cli verify <dir|manifest> [--json] [--debug]
    python -m merkledrop_cli proof <dir|manifest> <address> [--json]
    python -m merkledrop_cli sample --out FILE [--count N] [--seed S]
    python -m merkledrop_cli config --init | --show

Environment Variables:
    MERKLEDROP_TOKEN_SYMBOL       Token symbol (default: USDC)
    MERKLEDROP_TOKEN_DECIMALS     Token precision (default: 6)
    MERKLEDROP_LEAF_ENCODING      packed or abi (default: packed)
    MERKLEDROP_ODD_NODES          carry or duplicate (default: carry)
    MERKLEDROP_STRICT_PRECISION   Reject excess fractional digits (default: false)
    MERKLEDROP_OUT_DIR            Output directory (default: merkle-output)
    MERKLEDROP_LOG_LEVEL          Log level (default: INFO)
    MERKLEDROP_LOG_FILE           Optional log file
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.merkle.leaves import LeafEncoding
from core.merkle.merkle_tree import OddNodePolicy
from core.schemas.errors import MerkleDropException
from merkledrop_cli import __version__
from merkledrop_cli.commands import build, verify, proof, sample
from merkledrop_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="merkledrop",
        description="Merkle distribution builder - turn a rewards CSV into a root and per-address proofs.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./merkledrop.yaml or ~/.config/merkledrop/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build a distribution from a claims CSV",
        description="Validate claims, build the Merkle tree, verify every proof and write the output directory.",
    )
    build_parser.add_argument(
        "csv",
        type=str,
        help="Claims CSV with address and amount columns",
    )
    build_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Output directory (default: from config, merkle-output)",
    )
    build_parser.add_argument(
        "--decimals",
        type=int,
        default=None,
        help="Token precision (default: from config, 6)",
    )
    build_parser.add_argument(
        "--leaf-encoding",
        type=str,
        choices=[e.value for e in LeafEncoding],
        default=None,
        help="Leaf byte layout (default: packed)",
    )
    build_parser.add_argument(
        "--odd-nodes",
        type=str,
        choices=[p.value for p in OddNodePolicy],
        default=None,
        help="Unpaired node handling (default: carry)",
    )
    build_parser.add_argument(
        "--strict-precision",
        action="store_true",
        default=False,
        help="Reject amounts with more fractional digits than the token precision",
    )
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks in output",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a distribution offline",
        description="Verify file hashes, every proof against the root, and cross-file consistency.",
    )
    verify_parser.add_argument(
        "path",
        type=str,
        help="Output directory or distribution-manifest.json",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Show one address's claim and proof",
        description="Look up a claimant and re-verify their proof against the root.",
    )
    proof_parser.add_argument(
        "path",
        type=str,
        help="Output directory or distribution-manifest.json",
    )
    proof_parser.add_argument(
        "address",
        type=str,
        help="Claimant address (any casing)",
    )
    proof_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- sample command ---
    sample_parser = subparsers.add_parser(
        "sample",
        help="Write a sample claims CSV",
        description="Generate reproducible sample claims for trying out a build.",
    )
    sample_parser.add_argument(
        "--out", "-o",
        type=str,
        required=True,
        help="Path of the CSV to write",
    )
    sample_parser.add_argument(
        "--count", "-n",
        type=int,
        default=10,
        help="Number of claims (default: 10)",
    )
    sample_parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed (default: 0)",
    )
    sample_parser.set_defaults(func=sample.sample_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show the effective configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="merkledrop.yaml",
        help="Path for config file (default: merkledrop.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template(), encoding="utf-8")
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (MERKLEDROP_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(args.runtime_config.to_yaml(), end="")
        return EXIT_SUCCESS

    print("Usage: merkledrop config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except (FileNotFoundError, MerkleDropException) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
