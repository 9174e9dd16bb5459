"""
Module 03 - Claim Ingestion
File: ingest.py

Purpose: Turn a stream of raw records into an immutable ClaimSet.

Ingestion is the first of two sequential stages. It may consume its input
incrementally, but it hands the tree builder exactly one finished,
immutable ClaimSet; nothing downstream ever sees a partial claim list.

Failure policy:
- Per-row problems (malformed, bad address, bad amount, duplicate) are
  soft: the row is skipped, counted by reason and logged.
- Zero accepted claims is fatal (NoValidClaimsException).
- First occurrence of an address wins; later ones are duplicates.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from core.claims.addresses import address_key, canonicalize_address
from core.claims.amounts import MAX_DECIMALS, check_total_allocation, parse_amount
from core.claims.sources import RawRecord
from core.schemas.canonical import format_decimal
from core.schemas.claims import Claim, ClaimSet
from core.schemas.errors import (
    ConfigurationException,
    DuplicateAddressException,
    NoValidClaimsException,
    RecordRejectedException,
    RowRejection,
)


logger = logging.getLogger(__name__)


# Row-level rejections kept verbatim in the report; counts are always complete
DEFAULT_MAX_RECORDED_REJECTIONS = 1000


@dataclass
class IngestionReport:
    """Counts and details accumulated while ingesting one input."""
    total_rows: int = 0
    accepted: int = 0
    skipped: Counter = field(default_factory=Counter)
    rejections: list[RowRejection] = field(default_factory=list)
    max_recorded_rejections: int = DEFAULT_MAX_RECORDED_REJECTIONS

    @property
    def error_count(self) -> int:
        return sum(self.skipped.values())

    def record_rejection(self, row_number: int, exc: RecordRejectedException) -> None:
        """Count a skipped row and keep its details while under the cap."""
        self.skipped[exc.code] += 1
        if len(self.rejections) < self.max_recorded_rejections:
            self.rejections.append(exc.to_rejection(row_number))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "accepted": self.accepted,
            "error_count": self.error_count,
            "skipped": dict(sorted(self.skipped.items())),
        }

    def summary(self) -> str:
        """Human-readable multi-line summary."""
        lines = [
            f"Total rows processed: {self.total_rows}",
            f"Valid claims: {self.accepted}",
            f"Errors/skipped: {self.error_count}",
        ]
        for code, count in sorted(self.skipped.items()):
            lines.append(f"  {code}: {count}")
        return "\n".join(lines)


class ClaimIngestor:
    """
    Validates raw records one at a time and collects accepted claims.

    Usage:
        ingestor = ClaimIngestor(decimals=6)
        ingestor.consume(read_csv_records("rewards.csv"))
        claim_set = ingestor.finalize()
        print(ingestor.report.summary())
    """

    def __init__(
        self,
        decimals: int = 6,
        *,
        strict_precision: bool = False,
        max_recorded_rejections: int = DEFAULT_MAX_RECORDED_REJECTIONS,
    ) -> None:
        if not 0 <= decimals <= MAX_DECIMALS:
            raise ConfigurationException(
                f"Token decimals must be between 0 and {MAX_DECIMALS}, got {decimals}",
                field_path="token.decimals",
            )
        self.decimals = decimals
        self.strict_precision = strict_precision
        self.report = IngestionReport(max_recorded_rejections=max_recorded_rejections)
        self._claims: list[Claim] = []
        self._first_seen: dict[str, int] = {}
        self._finalized = False

    def _validate(self, record: RawRecord) -> Claim:
        """
        Validate one record.

        Raises:
            RecordRejectedException: Any soft, row-level rejection
        """
        address = canonicalize_address(record.address_text)
        units, value = parse_amount(
            record.amount_text,
            self.decimals,
            strict=self.strict_precision,
        )

        key = address_key(address)
        if key in self._first_seen:
            raise DuplicateAddressException(
                f"Duplicate address: {address}",
                raw_value=record.address_text,
                first_row=self._first_seen[key],
            )

        return Claim(
            address=address,
            amount=units,
            display_amount=format_decimal(value),
            source_row=record.row_number,
        )

    def add(self, record: RawRecord) -> Claim | None:
        """
        Ingest one record.

        Returns:
            The accepted Claim, or None if the row was skipped
        """
        if self._finalized:
            raise RuntimeError("ClaimIngestor already finalized")

        self.report.total_rows += 1
        try:
            claim = self._validate(record)
        except RecordRejectedException as exc:
            self.report.record_rejection(record.row_number, exc)
            logger.warning(f"Row {record.row_number}: {exc.message}")
            return None

        self._first_seen[address_key(claim.address)] = record.row_number
        self._claims.append(claim)
        self.report.accepted += 1
        return claim

    def consume(self, records: Iterable[RawRecord]) -> "ClaimIngestor":
        """Ingest every record from an iterable. Returns self for chaining."""
        for record in records:
            self.add(record)
        return self

    def finalize(self) -> ClaimSet:
        """
        Close ingestion and return the immutable claim set.

        Raises:
            NoValidClaimsException: If no record was accepted
            AllocationOverflowException: If the accepted amounts sum past uint256
        """
        self._finalized = True
        logger.info(
            f"CSV processing complete: {self.report.total_rows} rows, "
            f"{self.report.accepted} valid claims, {self.report.error_count} skipped"
        )
        if not self._claims:
            raise NoValidClaimsException(
                "No valid claims found in input",
                details=self.report.to_dict(),
            )
        claim_set = ClaimSet(tuple(self._claims))
        check_total_allocation(claim_set.total_allocation)
        return claim_set


def ingest_records(
    records: Iterable[RawRecord],
    decimals: int = 6,
    *,
    strict_precision: bool = False,
) -> tuple[ClaimSet, IngestionReport]:
    """
    Run ingestion over a record stream in one call.

    Raises:
        NoValidClaimsException: If no record was accepted
    """
    ingestor = ClaimIngestor(decimals, strict_precision=strict_precision)
    claim_set = ingestor.consume(records).finalize()
    return claim_set, ingestor.report
