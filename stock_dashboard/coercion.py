import math
import re
from typing import Any

from . import settings
from .exceptions import NumericCoercionFailure

# Leading numeric prefix, read the way spreadsheet exports are read leniently ("12 pcs" -> 12).
FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
INT_PREFIX = re.compile(r"^[+-]?\d+")


def parse_float(value: Any) -> float:
    """
    Reads a number from a raw CSV value or an already-typed record value.
    Raises NumericCoercionFailure when there is no usable number.
    """
    if isinstance(value, bool) or value is None:
        raise NumericCoercionFailure(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = FLOAT_PREFIX.match(str(value).strip())
        if not match:
            raise NumericCoercionFailure(value)
        number = float(match.group(0))
    if not math.isfinite(number):
        raise NumericCoercionFailure(value)
    return number


def parse_int(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise NumericCoercionFailure(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise NumericCoercionFailure(value)
        return int(value)
    match = INT_PREFIX.match(str(value).strip())
    if not match:
        raise NumericCoercionFailure(value)
    return int(match.group(0))


def to_number(value: Any, default: float = 0.0) -> float:
    try:
        return parse_float(value)
    except NumericCoercionFailure:
        return default


def coerce_field(header: str, raw: str) -> Any:
    """Converts one raw CSV string into its typed value. Unknown fields stay text."""
    if header not in settings.NUMERIC_FIELDS:
        return raw

    cleaned = raw.replace(",", "")
    if header == settings.ROW_NUMBER:
        try:
            return parse_int(cleaned)
        except NumericCoercionFailure:
            return 0

    try:
        number = parse_float(cleaned)
    except NumericCoercionFailure:
        return 0.0
    if header == settings.STOCK_OUT:
        return abs(number)
    return number


def coerce_row(raw_row: dict[str, str]) -> dict[str, Any]:
    return {header: coerce_field(header, raw) for header, raw in raw_row.items()}
