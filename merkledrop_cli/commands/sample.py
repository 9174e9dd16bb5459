"""
Module 08 - CLI Sample Command

Write a reproducible sample claims CSV for trying out a build.

Usage:
    merkledrop sample --out sample-data.csv --count 100 --seed 7
"""

from __future__ import annotations

import csv
import random
import sys
from argparse import Namespace
from decimal import Decimal
from pathlib import Path

from eth_utils import to_checksum_address

from core.claims.sources import DEFAULT_ADDRESS_COLUMN, DEFAULT_AMOUNT_COLUMN


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def generate_rows(count: int, seed: int = 0) -> list[tuple[str, str]]:
    """
    Deterministic (address, amount) rows.

    Amounts are between 1.00 and 1000.00 with two decimal places.
    """
    rng = random.Random(seed)
    rows = []
    seen: set[str] = set()
    while len(rows) < count:
        address = to_checksum_address("0x" + rng.getrandbits(160).to_bytes(20, "big").hex())
        if address in seen:
            continue
        seen.add(address)
        cents = rng.randint(100, 100_000)
        rows.append((address, str(Decimal(cents).scaleb(-2))))
    return rows


def write_sample_csv(path: str | Path, count: int, seed: int = 0) -> Path:
    """Write ``count`` sample rows with the default column names."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([DEFAULT_ADDRESS_COLUMN, DEFAULT_AMOUNT_COLUMN])
        writer.writerows(generate_rows(count, seed))
    return path


def sample_cmd(args: Namespace) -> int:
    """Execute the sample command."""
    if args.count < 1:
        print("Error: --count must be at least 1", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    path = write_sample_csv(args.out, args.count, args.seed)
    print(f"Wrote {args.count} sample claims to {path}")
    return EXIT_SUCCESS
