"""
Module 03 - Claim Ingestion

Parses raw (address, amount) records into a validated, deduplicated,
immutable ClaimSet.

Public API:
- read_csv_records / iter_csv_records / records_from_rows: record sources
- ClaimIngestor: streaming validator with per-reason error counts
- ingest_records: one-call ingestion
- canonicalize_address / parse_amount: field-level validators
"""
from .addresses import (
    address_key,
    canonicalize_address,
    is_valid_address,
)
from .amounts import (
    AMOUNT_CONTEXT,
    MAX_DECIMALS,
    check_total_allocation,
    from_smallest_unit,
    parse_amount,
    parse_decimal,
    to_smallest_unit,
)
from .sources import (
    DEFAULT_ADDRESS_COLUMN,
    DEFAULT_AMOUNT_COLUMN,
    FALLBACK_AMOUNT_COLUMNS,
    RawRecord,
    iter_csv_records,
    read_csv_records,
    records_from_rows,
)
from .ingest import (
    ClaimIngestor,
    IngestionReport,
    ingest_records,
)

__all__ = [
    "address_key",
    "canonicalize_address",
    "is_valid_address",
    "AMOUNT_CONTEXT",
    "MAX_DECIMALS",
    "check_total_allocation",
    "from_smallest_unit",
    "parse_amount",
    "parse_decimal",
    "to_smallest_unit",
    "DEFAULT_ADDRESS_COLUMN",
    "DEFAULT_AMOUNT_COLUMN",
    "FALLBACK_AMOUNT_COLUMNS",
    "RawRecord",
    "iter_csv_records",
    "read_csv_records",
    "records_from_rows",
    "ClaimIngestor",
    "IngestionReport",
    "ingest_records",
]
