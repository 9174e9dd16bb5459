"""
Module 03 - Claim Ingestion
File: sources.py

Purpose: Stream raw (address, amount) records from input sources.

Readers yield one RawRecord at a time so arbitrarily large inputs never
have to be loaded at once. They perform no validation beyond locating
the required columns; that is the ingestor's job.
"""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence, TextIO

from core.schemas.errors import MalformedInputException


logger = logging.getLogger(__name__)


DEFAULT_ADDRESS_COLUMN = "address"
DEFAULT_AMOUNT_COLUMN = "usdc_reward"

# Tried in order when the configured amount column is absent
FALLBACK_AMOUNT_COLUMNS: tuple[str, ...] = ("amount",)


@dataclass(frozen=True)
class RawRecord:
    """
    One unvalidated input row.

    Attributes:
        row_number: 1-based data row number (header excluded)
        address_text: Address field as read, or None if the field is absent
        amount_text: Amount field as read, or None if the field is absent
    """
    row_number: int
    address_text: str | None
    amount_text: str | None


def _resolve_column(
    fieldnames: Sequence[str],
    wanted: str,
    fallbacks: Sequence[str] = (),
) -> str:
    """Find a column by case-insensitive name, trying fallbacks in order."""
    by_lower = {name.lower(): name for name in fieldnames}
    for candidate in (wanted, *fallbacks):
        if candidate.lower() in by_lower:
            return by_lower[candidate.lower()]
    raise MalformedInputException(
        f"Input is missing required column '{wanted}'",
        details={"columns": list(fieldnames), "expected": [wanted, *fallbacks]},
    )


def iter_csv_records(
    stream: TextIO,
    *,
    address_column: str = DEFAULT_ADDRESS_COLUMN,
    amount_column: str = DEFAULT_AMOUNT_COLUMN,
) -> Iterator[RawRecord]:
    """
    Stream records from CSV text with a header row.

    Header names are matched case-insensitively after trimming.
    Blank lines are skipped and do not count as rows.

    Raises:
        MalformedInputException: If the header is missing or lacks
            the address or amount column
    """
    reader = csv.DictReader(stream)
    if reader.fieldnames is None:
        raise MalformedInputException("Input has no header row")

    fieldnames = [name.strip() for name in reader.fieldnames]
    reader.fieldnames = fieldnames

    address_key = _resolve_column(fieldnames, address_column)
    amount_key = _resolve_column(fieldnames, amount_column, FALLBACK_AMOUNT_COLUMNS)
    logger.debug(f"Reading CSV columns address={address_key!r} amount={amount_key!r}")

    for row_number, row in enumerate(reader, start=1):
        yield RawRecord(
            row_number=row_number,
            address_text=row.get(address_key),
            amount_text=row.get(amount_key),
        )


def read_csv_records(
    path: str | Path,
    *,
    address_column: str = DEFAULT_ADDRESS_COLUMN,
    amount_column: str = DEFAULT_AMOUNT_COLUMN,
    encoding: str = "utf-8-sig",
) -> Iterator[RawRecord]:
    """
    Stream records from a CSV file on disk.

    The file stays open only while the iterator is being consumed.

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedInputException: If required columns are missing
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    logger.info(f"Processing CSV file: {path}")
    with open(path, "r", newline="", encoding=encoding) as f:
        yield from iter_csv_records(
            f,
            address_column=address_column,
            amount_column=amount_column,
        )


def records_from_rows(
    rows: Iterable[Sequence[Any] | Mapping[str, Any]],
    *,
    address_column: str = DEFAULT_ADDRESS_COLUMN,
    amount_column: str = DEFAULT_AMOUNT_COLUMN,
) -> Iterator[RawRecord]:
    """
    Adapt in-memory rows into RawRecords.

    Accepts (address, amount) pairs or mappings keyed by the column names
    (the fallback amount columns are honoured for mappings too).
    Non-string values are converted with str().
    """
    def _text(value: Any) -> str | None:
        return None if value is None else str(value)

    for row_number, row in enumerate(rows, start=1):
        if isinstance(row, Mapping):
            amount = row.get(amount_column)
            if amount is None:
                for fallback in FALLBACK_AMOUNT_COLUMNS:
                    if fallback in row:
                        amount = row[fallback]
                        break
            yield RawRecord(row_number, _text(row.get(address_column)), _text(amount))
        else:
            address = row[0] if len(row) > 0 else None
            amount = row[1] if len(row) > 1 else None
            yield RawRecord(row_number, _text(address), _text(amount))
