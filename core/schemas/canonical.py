"""
Module 01 - Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic JSON serialization for output artifacts.

CRITICAL: All outputs from this module MUST be deterministic across runs.
Regenerating a distribution from the same claim list must produce
byte-identical artifact files.
"""

import json
import math
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import CanonicalizationException

# Indentation for human-facing artifact files
PRETTY_JSON_INDENT = 2


def _validate_float(value: float, path: str = "") -> None:
    """
    Validate that a float is finite (not NaN or Infinity).

    Raises:
        CanonicalizationException: If the float is NaN or Infinity.
    """
    if not math.isfinite(value):
        raise CanonicalizationException(
            message=f"Non-finite float value encountered: {value}",
            details={"path": path, "value": str(value)},
        )


def format_decimal(value: Decimal) -> str:
    """
    Render a Decimal as a plain (non-exponent) string.

    Trailing fractional zeros are kept as given so that "500.50"
    stays "500.50".
    """
    if not value.is_finite():
        raise CanonicalizationException(
            message=f"Non-finite decimal value encountered: {value}",
            details={"value": str(value)},
        )
    return format(value, "f")


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Recursively canonicalize a value for deterministic JSON serialization.

    Args:
        value: Any Python value to canonicalize.
        path: Current path for error reporting.

    Returns:
        A JSON-serializable canonical representation.

    Raises:
        CanonicalizationException: If the value cannot be canonicalized.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        # Must check bool before int since bool is subclass of int
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        _validate_float(value, path)
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, Decimal):
        return format_decimal(value)

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, BaseModel):
        dumped = value.model_dump(mode="json", by_alias=True)
        return canonicalize_value(dumped, path)

    if isinstance(value, dict):
        return {
            str(k): canonicalize_value(v, f"{path}.{k}" if path else str(k))
            for k, v in value.items()
        }

    if isinstance(value, (list, tuple)):
        return [
            canonicalize_value(item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]

    if isinstance(value, bytes):
        return "0x" + value.hex()

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_pretty(obj: Any) -> str:
    """
    Serialize an object to indented JSON for human-facing files.

    Key order is preserved (not sorted) so address maps keep leaf order.
    Output ends with a newline.

    Raises:
        CanonicalizationException: If a value cannot be represented
    """
    return json.dumps(
        canonicalize_value(obj),
        indent=PRETTY_JSON_INDENT,
        ensure_ascii=False,
    ) + "\n"
